"""Generative backend: prompt enhancement and multi-file project generation."""

from __future__ import annotations

import base64
import json
import logging
import mimetypes
import re
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List

import requests

from .models import ProjectFile, files_from_payload
from .settings import Settings

logger = logging.getLogger(__name__)

IMAGE_PLACEHOLDER = "{{CUSTOM_IMAGE_PLACEHOLDER}}"

PROJECT_FILES = ("index.html", "styles.css", "script.js", "server.py", "App.java", "config.json")

ENHANCE_SYSTEM_PROMPT = """You are an expert UI/UX prompt engineer. Rewrite the user's short or vague
website description into a detailed, professional design prompt for an AI website builder.

Rules:
1. Keep the core idea of the request.
2. Expand on visual style (glassmorphism, brutalism, minimalism, ...).
3. Suggest a specific color palette.
4. Name the sections (hero with call to action, features grid, testimonials, footer).
5. Mention layout specifics such as a responsive grid or a sticky header.
6. Output only the improved prompt text, without preamble or quotes.
7. If the input is empty, invent a creative, trending website concept."""

GENERATE_SYSTEM_PROMPT = """You are an expert full-stack developer and UI/UX designer.
Generate a multi-file project for the user's request.

Files to generate:
1. 'index.html': responsive website using Tailwind CSS. High quality but concise.
2. 'styles.css': custom CSS (max 50 lines).
3. 'script.js': interactive JavaScript (max 50 lines).
4. 'server.py': Python backend stub (max 30 lines).
5. 'App.java': Java backend stub (max 30 lines).
6. 'config.json': simple configuration.

Requirements:
- Use <script src="https://cdn.tailwindcss.com"></script>.
- Use placeholder images from 'https://picsum.photos/seed/{{random}}/800/600'.
{image_instruction}
- Keep the code concise so the response is not truncated.

Respond with a JSON object of the form
{{"files": [{{"filename": "...", "language": "html|css|javascript|python|java|json", "content": "..."}}]}}."""

IMAGE_INSTRUCTION = (
    f'- The user uploaded a custom image. Use the exact placeholder "{IMAGE_PLACEHOLDER}" as the src of '
    "the most prominent image (the logo if the site implies a brand, otherwise the hero image). "
    "Do not use a picsum URL for that element."
)

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


class GenerationError(RuntimeError):
    """The backend could not produce a usable answer."""


def _chat(settings: Settings, system_prompt: str, user_prompt: str, json_mode: bool = False) -> str:
    if not settings.api_key:
        raise GenerationError("Set PROMPTSITE_API_KEY or OPENAI_API_KEY in your environment.")

    payload: dict = {
        "model": settings.model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": 0.7,
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}

    try:
        response = requests.post(
            settings.chat_completions_url,
            headers={"Authorization": f"Bearer {settings.api_key}"},
            json=payload,
            timeout=settings.request_timeout,
        )
    except requests.RequestException as exc:
        raise GenerationError(f"Request failed: {exc}") from exc

    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if response.status_code >= 400 or "error" in data:
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message") or "Request failed"
        else:
            message = error or f"HTTP {response.status_code}"
        raise GenerationError(str(message))

    return _reply_text(data)


def _reply_text(data: dict) -> str:
    choices = data.get("choices") or []
    if not choices:
        return ""
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise GenerationError("Malformed response from AI")
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise GenerationError("Malformed response from AI")
    text = message.get("content") or ""
    if not isinstance(text, str):
        raise GenerationError("Malformed response from AI")
    return text.strip()


def enhance_prompt(prompt: str, settings: Settings) -> str:
    """Rewrite ``prompt`` into a detailed design brief.

    Falls back to the original prompt on any backend failure.
    """
    try:
        improved = _chat(settings, ENHANCE_SYSTEM_PROMPT, prompt or "Generate a creative website concept")
    except GenerationError as exc:
        logger.warning("Prompt enhancement failed: %s", exc)
        return prompt
    return improved or prompt


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", text))
    return text


def generate_project(prompt: str, settings: Settings, has_custom_image: bool = False) -> List[ProjectFile]:
    system_prompt = GENERATE_SYSTEM_PROMPT.format(
        image_instruction=IMAGE_INSTRUCTION if has_custom_image else ""
    )
    text = _chat(settings, system_prompt, prompt, json_mode=True)
    if not text:
        raise GenerationError("No response from AI")

    try:
        payload = json.loads(strip_code_fences(text))
    except ValueError as exc:
        raise GenerationError(f"Backend returned invalid JSON: {exc}") from exc

    files = files_from_payload(payload)
    if not files:
        raise GenerationError("Backend returned no files")
    logger.info("Generated %d files", len(files))
    return files


def inject_custom_image(files: Iterable[ProjectFile], data_url: str) -> List[ProjectFile]:
    result: List[ProjectFile] = []
    for project_file in files:
        if project_file.filename == "index.html":
            project_file = replace(project_file, content=project_file.content.replace(IMAGE_PLACEHOLDER, data_url))
        result.append(project_file)
    return result


def read_image_data_url(path: str | Path) -> str:
    path = Path(path)
    mime, _ = mimetypes.guess_type(path.name)
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{data}"
