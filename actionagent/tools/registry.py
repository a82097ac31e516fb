from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, object]

    def filter_args(self, args: object) -> dict[str, Any]:
        if not isinstance(args, dict):
            raise ValueError(f"Tool '{self.name}' args must be an object.")
        properties = self.input_schema.get("properties")
        if not isinstance(properties, dict):
            return dict(args)
        return {key: value for key, value in args.items() if key in properties}

    def to_openai_tool(self) -> dict[str, object]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


SEND_EMAIL_TOOL = ToolSpec(
    name="send_email",
    description=(
        "Envía un correo electrónico a los destinatarios especificados. "
        "Debe usarse siempre que el usuario pida enviar un email o mensaje."
    ),
    input_schema={
        "type": "object",
        "required": ["to", "subject", "body"],
        "properties": {
            "to": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Direcciones de correo de los destinatarios.",
            },
            "subject": {
                "type": "string",
                "description": "Asunto del correo.",
            },
            "body": {
                "type": "string",
                "description": "Contenido del mensaje.",
            },
            "driveAttachments": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Nombres de archivos de Google Drive a adjuntar.",
            },
        },
    },
)

CREATE_EVENT_TOOL = ToolSpec(
    name="create_event",
    description=(
        "Crea un evento en el calendario del usuario. Debe usarse siempre que "
        "el usuario pida crear una cita, reunión o evento."
    ),
    input_schema={
        "type": "object",
        "required": ["summary", "start", "end"],
        "properties": {
            "summary": {
                "type": "string",
                "description": "Título breve del evento.",
            },
            "start": {
                "type": "string",
                "description": "Inicio en formato ISO 8601 (YYYY-MM-DDTHH:MM:SS).",
            },
            "end": {
                "type": "string",
                "description": "Fin en formato ISO 8601 (YYYY-MM-DDTHH:MM:SS).",
            },
            "location": {
                "type": "string",
                "description": "Ubicación física o virtual (opcional).",
            },
        },
    },
)


class ToolRegistry:
    def __init__(self, specs: list[ToolSpec] | None = None) -> None:
        self._tools: dict[str, ToolSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError as exc:
            raise ValueError(f"Tool '{name}' is not registered.") from exc

    def list_tools(self) -> list[str]:
        return sorted(self._tools.keys())

    def render_for_prompt(self, name: str) -> str:
        spec = self.get(name)
        lines = [f"- {spec.name}: {spec.description}"]
        properties = spec.input_schema.get("properties")
        if isinstance(properties, dict):
            for arg_name, arg_spec in properties.items():
                if not isinstance(arg_name, str) or not isinstance(arg_spec, dict):
                    continue
                arg_type = str(arg_spec.get("type") or "any")
                arg_desc = str(arg_spec.get("description") or "").strip()
                lines.append(f"  - {arg_name} ({arg_type}): {arg_desc}")
        return "\n".join(lines)


def build_default_registry() -> ToolRegistry:
    return ToolRegistry([SEND_EMAIL_TOOL, CREATE_EVENT_TOOL])
