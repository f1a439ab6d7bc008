from .stream import CameraStream, StreamState

__all__ = ["CameraStream", "StreamState"]
