from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from config.settings import get_settings


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"


def _fetch_models(client: httpx.Client, endpoint: str, api_key: str) -> Dict[str, Any]:
    try:
        response = client.get(endpoint, params={"key": api_key})
    except httpx.HTTPError as exc:
        raise RuntimeError(f"Model list request failed: {exc}") from exc

    if response.is_error:
        raise RuntimeError(f"Model list request failed: {_error_message(response)}")
    try:
        return response.json()
    except ValueError as exc:
        raise RuntimeError("Model list response was not valid JSON") from exc


def list_available_models(client: Optional[httpx.Client] = None) -> List[str]:
    """Return the names of the models the configured API key can use."""
    settings = get_settings()
    if not settings.google_api_key:
        raise RuntimeError("GOOGLE_API_KEY not configured")

    if client is None:
        with httpx.Client(timeout=10.0) as owned:
            data = _fetch_models(owned, settings.models_api_url, settings.google_api_key)
    else:
        data = _fetch_models(client, settings.models_api_url, settings.google_api_key)

    models = data.get("models") if isinstance(data, dict) else None
    return [m["name"] for m in models or [] if isinstance(m, dict) and m.get("name")]
