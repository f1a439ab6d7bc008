#!/usr/bin/env python
# tests/test_camera.py

import os
import sys
import unittest
from unittest.mock import MagicMock

import requests

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.adapters.camera import CameraStream, StreamState
from poultry_ops.infrastructure.config import ConfigLoader
from poultry_ops.infrastructure.exceptions import ResourceNotFoundError, ValidationError
from tests.mocks.store_mock import InMemoryStore


class TestCameraStream(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryStore({"settings": {"cameraIP": "192.168.1.50"}})
        self.session = MagicMock()
        response = MagicMock()
        response.content = b"jpeg-bytes"
        self.session.get.return_value = response
        self.camera = CameraStream(
            firebase_client=self.store,
            config=ConfigLoader(load_env=False),
            session=self.session,
            fps=20
        )

    def tearDown(self):
        self.camera.stop()

    def test_capture(self):
        self.camera.load_camera_ip()
        frame = self.camera.capture()

        self.assertEqual(frame, b"jpeg-bytes")
        url = self.session.get.call_args[0][0]
        self.assertTrue(url.startswith("http://192.168.1.50/capture?t="))
        self.assertEqual(self.camera.frames_captured, 1)

    def test_capture_error_is_recorded(self):
        self.session.get.side_effect = requests.ConnectionError("unreachable")
        self.camera.load_camera_ip()

        self.assertIsNone(self.camera.capture())
        self.assertIn("unreachable", self.camera.last_error)

    def test_start_stop(self):
        status = self.camera.start()
        self.assertEqual(status["state"], StreamState.STREAMING.value)
        self.assertEqual(self.camera.start()["state"], "streaming")

        status = self.camera.stop()
        self.assertEqual(status["state"], "idle")
        self.assertIsNone(self.camera._thread)
        self.assertEqual(self.camera.stop()["state"], "idle")

    def test_missing_camera_ip(self):
        camera = CameraStream(firebase_client=InMemoryStore(), config=ConfigLoader(load_env=False), session=self.session)
        with self.assertRaises(ResourceNotFoundError):
            camera.start()
        self.assertEqual(camera.state, StreamState.IDLE)

    def test_invalid_fps(self):
        with self.assertRaises(ValidationError):
            self.camera.start(fps=0)


if __name__ == "__main__":
    unittest.main()
