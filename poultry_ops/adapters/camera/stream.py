"""
Snapshot polling of the coop camera.
"""
import logging
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

import requests

from poultry_ops.infrastructure.exceptions import ResourceNotFoundError, ValidationError

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"


class CameraStream:
    """
    Polls http://{ip}/capture at a fixed rate and keeps the last frame.

    States are idle and streaming. start() in streaming and stop() in idle
    are no-ops. stop() waits for the polling thread to exit.
    """

    def __init__(self, firebase_client=None, config=None, session: Optional[requests.Session] = None,
                 fps: Optional[float] = None, timeout: float = 5.0):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.session = session or requests.Session()
        self.fps = float(fps if fps is not None else self.config.get_interval('camera_fps', 5))
        self.timeout = timeout
        self.camera_ip_path = self.config.path('settings', 'camera_ip')

        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.state = StreamState.IDLE

        self.camera_ip: Optional[str] = None
        self.last_frame: Optional[bytes] = None
        self.last_frame_time: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.frames_captured = 0

    def load_camera_ip(self) -> str:
        """
        Read the camera address from the database.

        Raises:
            ResourceNotFoundError: no camera address is configured
        """
        camera_ip = self.firebase_client.get(self.camera_ip_path)
        if not camera_ip or not isinstance(camera_ip, str):
            raise ResourceNotFoundError(message="Camera IP is not configured", resource_type="camera")
        self.camera_ip = camera_ip.strip()
        return self.camera_ip

    def capture_url(self) -> str:
        # Cache-busting timestamp in milliseconds
        return f"http://{self.camera_ip}/capture?t={int(time.time() * 1000)}"

    def capture(self) -> Optional[bytes]:
        """Fetch one snapshot. Errors are recorded in last_error."""
        try:
            response = self.session.get(self.capture_url(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            if self.last_error != str(e):
                logger.warning(f"Camera capture failed: {str(e)}")
            self.last_error = str(e)
            return None

        self.last_frame = response.content
        self.last_frame_time = datetime.now()
        self.last_error = None
        self.frames_captured += 1
        return self.last_frame

    def _run(self) -> None:
        interval = 1.0 / self.fps
        while not self._stop_event.is_set():
            started = time.monotonic()
            self.capture()
            self._stop_event.wait(max(0.0, interval - (time.monotonic() - started)))

    def start(self, fps: Optional[float] = None) -> Dict[str, Any]:
        """
        Start polling.

        Args:
            fps: Frames per second (the configured rate when omitted)
        """
        if fps is not None and fps <= 0:
            raise ValidationError(message="fps must be positive", field="fps")

        with self._state_lock:
            if self.state == StreamState.STREAMING:
                return self.get_status()

            if not self.camera_ip:
                self.load_camera_ip()
            if fps is not None:
                self.fps = float(fps)

            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="camera-stream", daemon=True)
            self.state = StreamState.STREAMING
            self._thread.start()

        logger.info(f"Camera stream started at {self.fps:g} fps from {self.camera_ip}")
        return self.get_status()

    def stop(self) -> Dict[str, Any]:
        """Stop polling and wait for the thread."""
        with self._state_lock:
            if self.state == StreamState.IDLE:
                return self.get_status()

            self._stop_event.set()
            thread, self._thread = self._thread, None
            self.state = StreamState.IDLE

        if thread is not None:
            thread.join(timeout=self.timeout + 1)

        logger.info("Camera stream stopped")
        return self.get_status()

    def get_status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "camera_ip": self.camera_ip,
            "fps": self.fps,
            "frames_captured": self.frames_captured,
            "last_frame_time": self.last_frame_time.isoformat() if self.last_frame_time else None,
            "last_error": self.last_error
        }
