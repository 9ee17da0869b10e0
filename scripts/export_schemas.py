"""Export JSON schemas for the chat wire format and the context snapshot."""

import json
from pathlib import Path

from pydantic import BaseModel

from weatherchat.app.models import ChatRequest, ChatResponse, WeatherContext, WeatherObservation


def export_schema(model: type[BaseModel], schemas_dir: Path) -> Path:
    """Write one model's JSON schema (by alias) and return its path."""
    path = schemas_dir / f"{model.__name__}.schema.json"
    with open(path, "w") as f:
        json.dump(model.model_json_schema(by_alias=True), f, indent=2, ensure_ascii=False)
    return path


def main() -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    for model in (ChatRequest, ChatResponse, WeatherContext, WeatherObservation):
        path = export_schema(model, schemas_dir)
        print(f"Exported {model.__name__} schema to {path}")


if __name__ == "__main__":
    main()
