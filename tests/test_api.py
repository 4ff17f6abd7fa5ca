"""API tests for the health and recognize endpoints."""

import inspect
import threading
import pytest
from fastapi.testclient import TestClient

from api import health
from api.recognize import get_pipeline
from core.logging import NO_REQUEST, log
from main import app
from ocr.invoker import OcrInvoker
from ocr.pipeline import RecognitionPipeline
from ocr.tesseract_recognizer import TesseractRecognizer


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_capability(capability, timeout_ms=2000):
    pipeline = RecognitionPipeline(invoker=OcrInvoker(capability, timeout_ms=timeout_ms))
    app.dependency_overrides[get_pipeline] = lambda: pipeline


class TestHealth:
    
    def test_healthy_with_tesseract(self, client, monkeypatch):
        monkeypatch.setattr(TesseractRecognizer, "version", lambda self: "5.3.0")
        response = client.get("/api/health")
        
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["dependencies"]["tesseract"] == "5.3.0"
    
    def test_degraded_without_tesseract(self, client, monkeypatch):
        monkeypatch.setattr(TesseractRecognizer, "version", lambda self: None)
        response = client.get("/api/health")
        
        assert response.json()["status"] == "degraded"
    
    def test_health_check_runs_in_threadpool(self):
        """`tesseract --version` blocks, so the handler must be a plain def."""
        assert not inspect.iscoroutinefunction(health.health_check)


class TestRecognizeEndpoint:
    """Test upload handling and error mapping."""
    
    def test_success(self, client, png_bytes, make_capability):
        use_capability(make_capability(text="实财预贵 @@ ok"))
        response = client.post("/api/recognize", files={"file": ("scan.png", png_bytes, "image/png")})
        
        assert response.status_code == 200
        body = response.json()
        assert body["text"] == "实时预览 ok"
        assert body["has_text"] is True
        assert body["message"] == "识别完成"
        assert body["raw_text"] == "实财预贵 @@ ok"
        assert body["dimensions"] == {"width": 60, "height": 30, "source_width": 40, "source_height": 20}
        assert body["speech"] == {"language": "zh-CN", "rate": 0.85}
        assert body["progress"]
        assert body["request_id"].startswith("req_")
    
    def test_no_legible_text(self, client, png_bytes, make_capability):
        use_capability(make_capability(text="@@\n"))
        response = client.post("/api/recognize", files={"file": ("scan.png", png_bytes, "image/png")})
        
        assert response.status_code == 200
        assert response.json()["has_text"] is False
        assert response.json()["message"] == "未识别到有效文字"
    
    def test_unsupported_format(self, client, make_capability):
        capability = make_capability(text="x")
        use_capability(capability)
        response = client.post("/api/recognize", files={"file": ("notes.txt", b"hello", "text/plain")})
        
        assert response.status_code == 415
        assert response.json()["detail"]["code"] == "FORMAT_REJECTED"
        assert capability.calls == []
    
    def test_corrupt_image(self, client, make_capability):
        use_capability(make_capability(text="x"))
        response = client.post("/api/recognize", files={"file": ("scan.png", b"not a png", "image/png")})
        
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "IMAGE_DECODE_FAILED"
    
    def test_engine_failure(self, client, png_bytes, make_capability):
        use_capability(make_capability(error=RuntimeError("engine crashed")))
        response = client.post("/api/recognize", files={"file": ("scan.png", png_bytes, "image/png")})
        
        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "OCR_BACKEND_ERROR"
    
    def test_timeout(self, client, png_bytes, make_capability):
        release = threading.Event()
        use_capability(make_capability(block=release), timeout_ms=100)
        try:
            response = client.post("/api/recognize", files={"file": ("scan.png", png_bytes, "image/png")})
        finally:
            release.set()
        
        assert response.status_code == 504
        assert response.json()["detail"]["detail"]["timeout_ms"] == 100
    
    def test_request_id_in_log_records(self, client, png_bytes, make_capability):
        """Records logged while handling an upload carry its request id."""
        use_capability(make_capability(text="实时预览"))
        records = []
        handler_id = log.add(lambda message: records.append(message.record), level="INFO")
        try:
            response = client.post("/api/recognize", files={"file": ("scan.png", png_bytes, "image/png")})
            log.info("outside any request")
        finally:
            log.remove(handler_id)
        
        request_id = response.json()["request_id"]
        recognized = [r for r in records if r["message"].startswith("Recognized")]
        assert recognized
        assert recognized[0]["extra"]["request_id"] == request_id
        outside = [r for r in records if r["message"] == "outside any request"]
        assert outside[0]["extra"]["request_id"] == NO_REQUEST


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
