# medstock/infra/llm/openai_adapter.py
from __future__ import annotations
import io, os, json, base64, logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from PIL import Image, UnidentifiedImageError

from medstock.domain.errors import CollaboratorFailure, ValidationError
from medstock.domain.ports import SuggestionPort
from medstock.services.prompt_service import PromptService

logger = logging.getLogger("medstock.suggest")

MAX_IMAGE_SIDE = int(os.getenv("LLM_MAX_IMAGE_SIDE", "1600"))


def _unwrap_medications(result: Any) -> List[Dict[str, Any]]:
    # model kadang mengembalikan {"medications": [...]} atau langsung [...]
    if isinstance(result, dict) and isinstance(result.get("medications"), list):
        return [x for x in result["medications"] if isinstance(x, dict)]
    if isinstance(result, list):
        return [x for x in result if isinstance(x, dict)]
    return []


def normalize_image(data: bytes) -> bytes:
    """Decode gambar (Pillow), buang alpha, kecilkan sisi terpanjang, re-encode JPEG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode in ("RGBA", "LA", "P"):
                img = img.convert("RGBA")
                bg = Image.new("RGB", img.size, (255, 255, 255))
                bg.paste(img, mask=img.split()[3])
                img = bg
            elif img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((MAX_IMAGE_SIDE, MAX_IMAGE_SIDE), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=85, optimize=True)
            return buf.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"unreadable image: {e}") from e


class OpenAISuggestionAdapter(SuggestionPort):
    def __init__(self, prompts: Optional[PromptService] = None):
        self.api_key = os.getenv("OPENAI_API_KEY", "")
        self.dev_mode = os.getenv("DEV_MODE", "0") == "1"
        self.chat_model = os.getenv("LLM_MODEL", "gpt-4o-mini")
        self.temperature = float(os.getenv("LLM_TEMPERATURE", "0.2"))
        self.prompts = prompts or PromptService()
        self._client = None

    def configured(self) -> bool:
        return bool(self.api_key) and not self.dev_mode

    def _ensure_client(self):
        if self._client is None and self.configured():
            self._client = AsyncOpenAI(api_key=self.api_key)

    async def _chat(self, user_content: Any, *, json_mode: bool = False, max_tokens: int = 400) -> str:
        self._ensure_client()
        kwargs: Dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            rsp = await self._client.chat.completions.create(
                model=self.chat_model,
                messages=[
                    {"role": "system", "content": self.prompts.system_prompt()},
                    {"role": "user", "content": user_content},
                ],
                temperature=self.temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except Exception as e:
            logger.exception("[llm] completion failed model=%s", self.chat_model)
            raise CollaboratorFailure(f"LLM request failed: {e}") from e
        return (rsp.choices[0].message.content or "").strip()

    async def _chat_json(self, user_content: Any, max_tokens: int = 1500) -> Any:
        text = await self._chat(user_content, json_mode=True, max_tokens=max_tokens)
        try:
            return json.loads(text)
        except ValueError as e:
            raise CollaboratorFailure(f"LLM returned invalid JSON: {e}") from e

    # ==== Ekstraksi ====
    async def extract_from_text(self, text: str) -> List[Dict[str, Any]]:
        if not (text or "").strip():
            return []
        if not self.configured():
            logger.info("[llm] offline/dev mode: extraction skipped")
            return []
        return _unwrap_medications(await self._chat_json(self.prompts.extract_text(text)))

    async def extract_from_file(self, data: bytes, mime_type: str) -> List[Dict[str, Any]]:
        mime = (mime_type or "").lower()
        if mime == "text/plain":
            return await self.extract_from_text(data.decode("utf-8", errors="replace"))

        if mime.startswith("image/"):
            b64 = base64.b64encode(normalize_image(data)).decode("ascii")
            part = {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{b64}"}}
        elif mime == "application/pdf":
            b64 = base64.b64encode(data).decode("ascii")
            part = {
                "type": "file",
                "file": {"filename": "upload.pdf", "file_data": f"data:application/pdf;base64,{b64}"},
            }
        else:
            raise ValidationError(f"unsupported file type: {mime_type!r} (use image, PDF or .txt)")

        if not self.configured():
            logger.info("[llm] offline/dev mode: file extraction skipped")
            return []
        content = [part, {"type": "text", "text": self.prompts.extract_file()}]
        return _unwrap_medications(await self._chat_json(content))

    # ==== Sugesti field ====
    async def suggest_pmc(self, name: str, presentation: Optional[str]) -> Any:
        if not name or not self.configured():
            return None
        return await self._chat(self.prompts.pmc(name, presentation), max_tokens=20)

    async def suggest_class(self, name: str, active_ingredient: Optional[str]) -> str:
        if not name or not self.configured():
            return ""
        return await self._chat(self.prompts.med_class(name, active_ingredient), max_tokens=30)

    async def suggest_details(self, name: str) -> Dict[str, Any]:
        if len((name or "").strip()) < 3 or not self.configured():
            return {}
        out = await self._chat_json(self.prompts.details(name), max_tokens=300)
        return out if isinstance(out, dict) else {}

    async def write_report(self, records: List[Dict[str, Any]], columns: List[str], today: str) -> str:
        if not records or not self.configured():
            return ""
        inventory = json.dumps(records, ensure_ascii=False, indent=2)
        return await self._chat(self.prompts.report(inventory, columns, today), max_tokens=4000)

    async def explain_mechanism(self, active_ingredient: str) -> str:
        if not active_ingredient or not self.configured():
            return ""
        return await self._chat(self.prompts.mechanism(active_ingredient), max_tokens=300)
