"""Smart-home hub: binary protocol codec, discovery state machine and MCP server."""
