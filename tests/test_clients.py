"""
Tests for the OCR and structuring clients (mocked engines).
"""
from unittest.mock import MagicMock, patch

import pytest
import pytesseract
from PIL import Image

from app.errors import ErrorKind, PipelineError
from app.pipeline.ocr import TesseractExtractor, configure_tesseract
from app.pipeline.structurer import PROMPT_TEMPLATE, GeminiStructuringClient, build_prompt


@pytest.fixture()
def image_path(tmp_path):
    path = tmp_path / "receipt.png"
    Image.new("RGB", (40, 20), "white").save(path)
    return str(path)


class TestTesseractExtractor:
    def test_returns_text(self, image_path):
        with patch("app.pipeline.ocr.pytesseract.image_to_string", return_value="Coffee 3.50\n") as ocr:
            text = TesseractExtractor(language="eng", timeout=5).extract(image_path)
        assert text == "Coffee 3.50\n"
        _, kwargs = ocr.call_args
        assert kwargs == {"lang": "eng", "timeout": 5}

    def test_blank_text_is_not_an_error(self, image_path):
        with patch("app.pipeline.ocr.pytesseract.image_to_string", return_value=""):
            assert TesseractExtractor().extract(image_path) == ""

    def test_unreadable_image(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"definitely not an image")
        with pytest.raises(PipelineError) as exc:
            TesseractExtractor().extract(str(path))
        assert exc.value.kind == ErrorKind.EXTRACTION_ERROR

    def test_engine_failure(self, image_path):
        err = pytesseract.TesseractError(1, "Failed loading language 'xx'")
        with patch("app.pipeline.ocr.pytesseract.image_to_string", side_effect=err):
            with pytest.raises(PipelineError) as exc:
                TesseractExtractor(language="xx").extract(image_path)
        assert exc.value.kind == ErrorKind.EXTRACTION_ERROR

    def test_timeout(self, image_path):
        with patch(
            "app.pipeline.ocr.pytesseract.image_to_string",
            side_effect=RuntimeError("Tesseract process timeout"),
        ):
            with pytest.raises(PipelineError) as exc:
                TesseractExtractor(timeout=1).extract(image_path)
        assert "timeout" in exc.value.details["details"]


class TestConfigureTesseract:
    def test_sets_binary(self, monkeypatch):
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")
        configure_tesseract("/opt/tesseract/bin/tesseract")
        assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"

    def test_unset_keeps_default(self, monkeypatch):
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")
        configure_tesseract(None)
        assert pytesseract.pytesseract.tesseract_cmd == "tesseract"

    def test_extractor_leaves_binary_alone(self, monkeypatch):
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")
        TesseractExtractor(language="deu", timeout=3)
        assert pytesseract.pytesseract.tesseract_cmd == "tesseract"


class TestPrompt:
    def test_embeds_text_and_shape(self):
        prompt = build_prompt("Coffee 3.50\nBagel 2.00")
        assert "Coffee 3.50\nBagel 2.00" in prompt
        for key in ('"storeName"', '"date"', '"items"', '"price"', '"quantity"', '"totalAmount"'):
            assert key in prompt
        assert "Return ONLY the JSON object" in prompt

    def test_custom_template(self):
        assert build_prompt("abc", "Text: {raw_text}") == "Text: abc"

    def test_default_template_braces_escaped(self):
        # the JSON example must survive str.format
        assert "{raw_text}" in PROMPT_TEMPLATE
        assert "{{" in PROMPT_TEMPLATE


class TestGeminiStructuringClient:
    def test_missing_api_key(self):
        with pytest.raises(PipelineError) as exc:
            GeminiStructuringClient(api_key="").structure("Coffee 3.50")
        assert exc.value.kind == ErrorKind.STRUCTURING_SERVICE_ERROR

    def test_returns_raw_text(self):
        with patch("app.pipeline.structurer.genai") as genai:
            model = MagicMock()
            model.generate_content.return_value.text = '```json\n{"items": []}\n```'
            genai.GenerativeModel.return_value = model
            client = GeminiStructuringClient(api_key="k", model="gemini-test", timeout=12)
            out = client.structure("Coffee 3.50")

        assert out == '```json\n{"items": []}\n```'
        genai.configure.assert_called_once_with(api_key="k")
        genai.GenerativeModel.assert_called_once_with("gemini-test")
        args, kwargs = model.generate_content.call_args
        assert "Coffee 3.50" in args[0]
        assert kwargs == {"request_options": {"timeout": 12}}

    def test_service_failure(self):
        with patch("app.pipeline.structurer.genai") as genai:
            genai.GenerativeModel.return_value.generate_content.side_effect = RuntimeError("429 quota")
            with pytest.raises(PipelineError) as exc:
                GeminiStructuringClient(api_key="k").structure("Coffee 3.50")
        assert exc.value.kind == ErrorKind.STRUCTURING_SERVICE_ERROR
        assert "429 quota" in exc.value.details["details"]
