import cv2
import numpy as np

class QRReader:
    """
    Uses OpenCV QRCodeDetector to read back images we rendered:
      - raw file bytes (PNG/JPEG)
      - an already decoded BGR frame
    Returns the decoded text or None.
    """
    def __init__(self):
        self.detector = cv2.QRCodeDetector()

    def decode_bgr(self, frame_bgr):
        data, points, _ = self.detector.detectAndDecode(frame_bgr)
        if data:
            return data
        return None

    def decode_bytes(self, image_bytes: bytes):
        arr = np.frombuffer(image_bytes, np.uint8)
        frame = cv2.imdecode(arr, cv2.IMREAD_COLOR)
        if frame is None:
            return None
        return self.decode_bgr(frame)

    def decode_file(self, path: str):
        with open(path, "rb") as f:
            return self.decode_bytes(f.read())
