# config.py

import os
import yaml
from pathlib import Path
from typing import Optional
from chat.core.state import Config


_INT_KEYS = {"max_tokens", "max_input_chars", "title_max_chars"}
_FLOAT_KEYS = {"answer_delay_s"}


def load_config(profile: str = "default", config_dir: Optional[Path] = None) -> Config:
    """Load the chat Config with YAML and env overrides.

    Only the fields defined in chat.core.state.Config are accepted:
      profile, provider, model, max_tokens, storage_dir, storage_key,
      answer_delay_s, max_input_chars, title_max_chars, log_level
    """

    # Base defaults aligned with state.Config
    cfg_map: dict[str, object] = {
        "profile": profile,
        "provider": "simulated",
        "model": "deepseek-chat",
        "max_tokens": 1024,
        "storage_dir": Path("runtime"),
        "storage_key": "aiChatHistory",
        "answer_delay_s": 1.5,
        "max_input_chars": 2000,
        "title_max_chars": 30,
        "log_level": "INFO",
    }

    # Optional YAML overrides; only accept known keys
    yaml_path = Path(config_dir or "configs") / f"{profile}.yaml"
    if yaml_path.exists():
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
            if isinstance(yaml_config, dict):
                for k in list(cfg_map.keys()):
                    if k in yaml_config and yaml_config[k] is not None:
                        cfg_map[k] = yaml_config[k]
        except (OSError, yaml.YAMLError):
            # Ignore YAML issues; stick to defaults
            pass

    # Environment overrides
    env_overrides = {
        "provider": os.getenv("CHAT_PROVIDER"),
        "model": os.getenv("CHAT_MODEL"),
        "max_tokens": os.getenv("CHAT_MAX_TOKENS"),
        "storage_dir": os.getenv("CHAT_STORAGE_DIR"),
        "storage_key": os.getenv("CHAT_STORAGE_KEY"),
        "answer_delay_s": os.getenv("CHAT_ANSWER_DELAY"),
        "log_level": os.getenv("CHAT_LOG_LEVEL"),
    }
    for k, v in env_overrides.items():
        if v is None:
            continue
        if k in _INT_KEYS:
            try:
                cfg_map[k] = int(v)
            except ValueError:
                continue
        elif k in _FLOAT_KEYS:
            try:
                cfg_map[k] = float(v)
            except ValueError:
                continue
        else:
            cfg_map[k] = v

    # Coerce numeric fields from YAML; a bad value falls back to the default
    defaults = Config(profile=profile, provider="", model="", max_tokens=1024)
    for k in _INT_KEYS | _FLOAT_KEYS:
        cast = int if k in _INT_KEYS else float
        try:
            cfg_map[k] = cast(cfg_map[k])
        except (TypeError, ValueError):
            cfg_map[k] = getattr(defaults, k)

    # Coerce storage_dir to Path if a string slipped in
    sd = cfg_map.get("storage_dir")
    if isinstance(sd, str):
        cfg_map["storage_dir"] = Path(sd)

    cfg_map["provider"] = str(cfg_map["provider"]).strip().lower()
    cfg_map["log_level"] = str(cfg_map["log_level"]).upper()

    return Config(**cfg_map)  # type: ignore[arg-type]
