"""Audio node serving WebM/Opus voice playback over HTTP and WebSocket."""

__version__ = "1.0.0"