# -*- coding: utf-8 -*-
"""Shared fixture: a fresh app and database per test class."""

from __future__ import annotations

import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict
from uuid import uuid4

from fastapi.testclient import TestClient


class AppTestCase(unittest.TestCase):
    client: TestClient

    @classmethod
    def setUpClass(cls) -> None:
        cls._tmp = Path(tempfile.mkdtemp(prefix="werkowt-test-"))
        data_root = cls._tmp / "data"
        os.environ["WERKOWT_DATA_ROOT"] = str(data_root)
        os.environ["WERKOWT_DB_PATH"] = str(data_root / "werkowt.db")
        os.environ["WERKOWT_JWT_SECRET"] = "test-secret"
        # LLM calls must never leave the test process.
        os.environ.pop("ANTHROPIC_API_KEY", None)

        # Ensure settings/app reflect the env vars above.
        for name in list(sys.modules.keys()):
            if name == "werkowt" or name.startswith("werkowt."):
                sys.modules.pop(name, None)

        from werkowt.api import app  # noqa: WPS433 (import inside test for env control)

        cls.app = app
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls) -> None:
        cls.client.close()
        shutil.rmtree(cls._tmp, ignore_errors=True)

    def register(self, email: str | None = None, password: str = "password123") -> Dict[str, str]:
        """Register a fresh user and return bearer headers for it."""
        email = email or f"user-{uuid4().hex[:8]}@example.com"
        resp = self.client.post("/api/auth/register", json={"email": email, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        # Keep requests independent of the cookie the client just stored.
        self.client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['token']}"}
