# medstock/services/prompt_service.py
import os, yaml
from pathlib import Path
from typing import Any, Dict

ROOT_DIR = Path(__file__).resolve().parents[2]
PROMPT_DIR = Path(os.getenv("PROMPT_DIR", ROOT_DIR / "config" / "prompts"))

REQUIRED_KEYS = ("system", "extract_text", "extract_file", "pmc", "class", "details", "mechanism", "report")


class PromptService:
    """Template prompt untuk collaborator sugesti, dibaca dari YAML."""

    def __init__(self, prompt_dir: Path | None = None):
        path = Path(prompt_dir or PROMPT_DIR) / "suggestions.yaml"
        self.templates: Dict[str, str] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        missing = [k for k in REQUIRED_KEYS if k not in self.templates]
        if missing:
            raise ValueError(f"prompt file {path} missing keys: {missing}")

    def system_prompt(self) -> str:
        return self.templates["system"]

    def render(self, key: str, **values: Any) -> str:
        return self.templates[key].format(**{k: ("" if v is None else v) for k, v in values.items()})

    # ---- shortcuts ----
    def extract_text(self, text: str) -> str:
        return self.render("extract_text", text=text)

    def extract_file(self) -> str:
        return self.templates["extract_file"]

    def pmc(self, name: str, presentation: str | None) -> str:
        return self.render("pmc", name=name, presentation=presentation or "")

    def med_class(self, name: str, active_ingredient: str | None) -> str:
        hint = f" (princípio ativo: {active_ingredient})" if active_ingredient else ""
        return self.render("class", name=name, ingredient_hint=hint)

    def details(self, name: str) -> str:
        return self.render("details", name=name)

    def mechanism(self, active_ingredient: str) -> str:
        return self.render("mechanism", active_ingredient=active_ingredient)

    def report(self, inventory_json: str, columns: list[str], today: str) -> str:
        return self.render("report", inventory=inventory_json, columns=", ".join(columns), today=today)
