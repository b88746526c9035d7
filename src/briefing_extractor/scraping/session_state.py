"""Validation of the persisted Workfront session (Playwright storage state)."""

from __future__ import annotations

import json
from pathlib import Path

from ..domain.errors import SessionStateError


def validate_session_state(path: str) -> Path:
    """Return the resolved state file path or raise `SessionStateError`."""
    state_path = Path(path).expanduser().resolve()
    if not state_path.is_file():
        raise SessionStateError(
            f"Arquivo de sessão não encontrado: {state_path.name}. Execute o login primeiro.",
            detail=str(state_path),
        )
    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SessionStateError("Erro na validação da sessão: arquivo ilegível", detail=str(e)) from e

    if not isinstance(data, dict) or not (data.get("cookies") or data.get("origins")):
        raise SessionStateError("Arquivo de sessão está vazio ou inválido", detail=str(state_path))
    return state_path
