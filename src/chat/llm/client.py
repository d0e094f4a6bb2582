from __future__ import annotations

import json
import os
import socket
import time
from dataclasses import dataclass
from typing import Optional
from urllib import error, request

from chat.errors import ProviderError

_PROVIDER = "llm_deepseek"


@dataclass
class LLMClient:
    """
    Minimal client for DeepSeek-compatible chat completions.

    Any endpoint speaking the OpenAI chat-completions shape works by pointing
    DEEPSEEK_API_BASE at it.
    """

    model: str
    api_key: Optional[str] = None
    api_base: Optional[str] = None

    def _get_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        return os.getenv("DEEPSEEK_API_KEY")

    def _endpoint(self) -> str:
        base = self.api_base or os.getenv("DEEPSEEK_API_BASE", "https://api.deepseek.com")
        return base.rstrip("/") + "/v1/chat/completions"

    # --- Public API ---------------------------------------------------------
    def generate(self, *, system_instruction: Optional[str], user_text: str, max_output_tokens: int) -> str:
        """Return the assistant text for a single user turn. Raises ProviderError."""
        key = self._get_key()
        if not key:
            raise ProviderError("Missing DEEPSEEK_API_KEY", provider=_PROVIDER)

        headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }
        messages = []
        if (system_instruction or "").strip():
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": user_text})
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max(1, int(max_output_tokens or 1024)),
            "stream": False,
        }

        data = json.dumps(payload).encode("utf-8")
        req = request.Request(self._endpoint(), data=data, headers=headers, method="POST")

        # Simple retry for transient errors
        retries = int(os.getenv("DEEPSEEK_RETRIES", "2") or 2)
        backoff = float(os.getenv("DEEPSEEK_BACKOFF", "1.5") or 1.5)
        timeout = float(os.getenv("DEEPSEEK_TIMEOUT", "60") or 60.0)

        for attempt in range(retries + 1):
            try:
                with request.urlopen(req, timeout=timeout) as resp:
                    obj = json.loads(resp.read().decode("utf-8"))
            except error.HTTPError as e:
                try:
                    body = e.read().decode("utf-8")
                except (OSError, UnicodeDecodeError):
                    body = str(e)
                if e.code in (429, 503) and attempt < retries:
                    time.sleep(backoff * (2 ** attempt))
                    continue
                raise ProviderError(f"DeepSeek HTTP {e.code}: {body}", provider=_PROVIDER) from e
            except (error.URLError, socket.timeout) as e:
                if attempt < retries:
                    time.sleep(backoff * (2 ** attempt))
                    continue
                raise ProviderError(f"DeepSeek network error: {e}", provider=_PROVIDER) from e
            except ValueError as e:
                raise ProviderError(f"DeepSeek returned invalid JSON: {e}", provider=_PROVIDER) from e

            choices = (obj.get("choices") if isinstance(obj, dict) else None) or []
            if not choices:
                raise ProviderError("DeepSeek: empty choices", provider=_PROVIDER)
            content = (choices[0].get("message") or {}).get("content") or ""
            if not content.strip():
                raise ProviderError("DeepSeek: empty answer", provider=_PROVIDER)
            return content

        # Should not reach here
        raise ProviderError("DeepSeek: retries exhausted", provider=_PROVIDER)
