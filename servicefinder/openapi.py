"""The API's Swagger 2.0 description."""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

TITLE = "Service Finder API"
VERSION = "1.0"
DESCRIPTION = "Plataforma de prestação e busca de serviços."
BASE_PATH = "/api/v1"


def _user_id_param(description: str) -> dict[str, Any]:
    return {
        "type": "string",
        "description": description,
        "name": "userId",
        "in": "query",
        "required": True,
    }


def _posting_id_param() -> dict[str, Any]:
    return {
        "type": "string",
        "description": "Posting ID",
        "name": "id",
        "in": "path",
        "required": True,
    }


def _operation(tag: str, summary: str, *parameters: dict[str, Any]) -> dict[str, Any]:
    operation: dict[str, Any] = {"tags": [tag], "summary": summary}
    if parameters:
        operation["parameters"] = list(parameters)
    operation["responses"] = {}
    return operation


def _paths() -> dict[str, Any]:
    return {
        "/login": {"post": _operation("users", "Login")},
        "/logout": {"post": _operation("users", "Logout")},
        "/me": {
            "get": _operation(
                "users",
                "Obter dados do usuário logado",
                _user_id_param("ID do usuário"),
            )
        },
        "/postings": {
            "get": _operation("postings", "Listar anúncios públicos"),
            "post": _operation(
                "postings",
                "Criar anúncio (posting)",
                _user_id_param("ID do prestador"),
            ),
        },
        "/postings/mine": {
            "get": _operation(
                "postings",
                "Listar meus anúncios",
                _user_id_param("ID do prestador"),
            )
        },
        "/postings/{id}": {
            "get": _operation("postings", "Detalhar anúncio público", _posting_id_param()),
            "patch": _operation(
                "postings",
                "Atualizar anúncio",
                _user_id_param("ID do prestador"),
                _posting_id_param(),
            ),
        },
        "/providers/profile": {
            "patch": _operation(
                "users",
                "Atualizar perfil do prestador",
                _user_id_param("ID do prestador"),
            )
        },
        "/users": {"post": _operation("users", "Cadastrar usuário")},
    }


def swagger_document(host: str = "", schemes: Optional[Sequence[str]] = None) -> dict[str, Any]:
    """Return the Swagger document as a dictionary."""
    return {
        "schemes": list(schemes or []),
        "swagger": "2.0",
        "info": {
            "description": DESCRIPTION,
            "title": TITLE,
            "contact": {},
            "version": VERSION,
        },
        "host": host,
        "basePath": BASE_PATH,
        "paths": _paths(),
    }


def swagger_json(host: str = "", schemes: Optional[Sequence[str]] = None) -> str:
    """Return the Swagger document encoded as JSON."""
    return json.dumps(swagger_document(host, schemes), indent=4, ensure_ascii=False)