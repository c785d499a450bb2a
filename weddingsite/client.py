# weddingsite/client.py
# =================================================================================
# 🔑 SESIÓN DEL INVITADO (cliente HTTP)
# ---------------------------------------------------------------------------------
# - Guarda token + usuario en memoria y en un JSON en disco
#   (claves: id_token, user, auth_version).
# - Una sesión guardada con otra auth_version se descarta al cargar.
# - login_with_qr_token / logout / auth_headers / get / post.
# =================================================================================

import json
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from loguru import logger

from weddingsite import config


class AuthError(Exception):
    """Login rechazado por la API (token desconocido, no invitado, rate limit...)."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class GuestSession:
    def __init__(
        self,
        api_base_url: str,
        storage_path: Optional[Path] = None,
        auth_version: str = config.AUTH_VERSION,
        timeout: float = 15.0,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.storage_path = Path(storage_path) if storage_path else None
        self.auth_version = auth_version
        self.timeout = timeout
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self._load()

    # ------------------------------------------------------------------ almacén
    def _load(self) -> None:
        if not self.storage_path or not self.storage_path.exists():
            return
        try:
            data = json.loads(self.storage_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Sesión guardada ilegible ({}); se descarta.", e)
            self._clear_storage()
            return
        if data.get("auth_version") != self.auth_version:
            logger.info("Sesión guardada con auth_version distinta; se descarta.")
            self._clear_storage()
            return
        self.token = data.get("id_token")
        self.user = data.get("user")

    def _save(self) -> None:
        if not self.storage_path:
            return
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"id_token": self.token, "user": self.user, "auth_version": self.auth_version}
        self.storage_path.write_text(json.dumps(payload), encoding="utf-8")

    def _clear_storage(self) -> None:
        if self.storage_path and self.storage_path.exists():
            self.storage_path.unlink()

    # ----------------------------------------------------------------- sesión
    @property
    def is_logged_in(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.get("is_admin"))

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def login_with_qr_token(self, qr_token: str) -> Dict[str, Any]:
        response = requests.post(
            f"{self.api_base_url}/api/auth/login",
            json={"qr_token": qr_token},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            try:
                message = response.json().get("error") or response.text
            except ValueError:
                message = response.text
            raise AuthError(message, response.status_code)

        data = response.json()
        self.token = data["token"]
        self.user = data["user"]
        self._save()
        logger.info("Sesión iniciada → user_id={}", self.user.get("id"))
        return self.user

    def logout(self) -> None:
        self.token = None
        self.user = None
        self._clear_storage()

    # -------------------------------------------------------------- peticiones
    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = {**kwargs.pop("headers", {}), **self.auth_headers()}
        response = requests.request(
            method,
            f"{self.api_base_url}{path}",
            headers=headers,
            timeout=kwargs.pop("timeout", self.timeout),
            **kwargs,
        )
        # Token caducado o revocado: se cierra la sesión local
        if response.status_code == 401 and self.token:
            logger.info("La API rechazó el token; cerrando sesión local.")
            self.logout()
        return response

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        return self.request("POST", path, **kwargs)
