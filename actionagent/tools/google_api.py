from __future__ import annotations

import json
from urllib import error as urlerror
from urllib import request as urlrequest


class GoogleApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def api_request_json(
    url: str,
    method: str,
    access_token: str,
    timeout: int,
    service_name: str,
    body: dict[str, object] | None = None,
) -> dict:
    headers = {"Accept": "application/json", "Authorization": f"Bearer {access_token}"}
    data = None
    if body is not None:
        headers["Content-Type"] = "application/json"
        data = json.dumps(body).encode("utf-8")
    req = urlrequest.Request(url, data=data, method=method, headers=headers)

    try:
        with urlrequest.urlopen(req, timeout=timeout) as res:
            payload = json.loads(res.read().decode("utf-8"))
    except urlerror.HTTPError as exc:
        raise _http_error(service_name, exc) from exc
    except (urlerror.URLError, TimeoutError, ValueError, OSError) as exc:
        raise GoogleApiError(f"{service_name} request failed: {exc}") from exc

    if not isinstance(payload, dict):
        raise GoogleApiError(f"{service_name} returned an unexpected payload.")
    return payload


def _http_error(service_name: str, exc: urlerror.HTTPError) -> GoogleApiError:
    if exc.code in {401, 403}:
        return GoogleApiError(
            f"{service_name} rejected the access token. Please reconnect Google.",
            status_code=exc.code,
        )
    if exc.code == 404:
        return GoogleApiError(f"{service_name} resource not found.", status_code=exc.code)
    detail = _google_error_message(exc)
    suffix = f": {detail}" if detail else ""
    return GoogleApiError(f"{service_name} API error {exc.code}{suffix}", status_code=exc.code)


def _google_error_message(exc: urlerror.HTTPError) -> str:
    try:
        parsed = json.loads(exc.read().decode("utf-8", errors="replace"))
    except (ValueError, OSError):
        return ""
    nested = parsed.get("error") if isinstance(parsed, dict) else None
    if isinstance(nested, dict):
        return str(nested.get("message") or "").strip()
    return ""


def require_access_token(access_token: object) -> str:
    token = access_token.strip() if isinstance(access_token, str) else ""
    if not token:
        raise GoogleApiError("Google account is not connected. Please connect Google first.")
    return token
