"""Types, codec, transport, and configuration shared by both ends of the link."""
