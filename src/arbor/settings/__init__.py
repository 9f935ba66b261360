import json
import os
from typing import Any, cast

from loguru import logger
from pydantic import ValidationError

from arbor.settings.models import AppModel
from arbor.utils import data_dir_path

ENV_PREFIX = "ARBOR"


class SettingsManager:
    """
    Loads Arbor settings from `data/<SETTINGS_FILENAME>` and the environment.

    Values come from the model defaults, then the settings file when present,
    then `ARBOR_<SECTION>_<FIELD>` environment variables. Everything is
    validated against `AppModel`.
    """

    def __init__(self):
        self.filename = os.environ.get("SETTINGS_FILENAME", "settings.json")
        self.settings_file = data_dir_path / self.filename

        if self.settings_file.exists():
            self.load()
        else:
            logger.info(f"No {self.filename} found, using defaults and environment")
            self.settings = AppModel.model_validate(
                self.check_environment(AppModel().model_dump(mode="json"), ENV_PREFIX)
            )

    def check_environment(
        self,
        settings: dict[str, Any],
        prefix: str = "",
        separator: str = "_",
    ) -> dict[str, Any]:
        """Return `settings` with every field overridden by its environment variable."""

        checked_settings = dict[str, Any]()

        for key, value in settings.items():
            if isinstance(value, dict):
                checked_settings[key] = self.check_environment(
                    settings=cast(dict[str, Any], value),
                    prefix=f"{prefix}{separator}{key}",
                )
                continue

            environment_variable = f"{prefix}{separator}{key}".upper()
            new_value = os.getenv(environment_variable)

            if not new_value:
                checked_settings[key] = value
            elif isinstance(value, bool):
                checked_settings[key] = new_value.lower() == "true" or new_value == "1"
            elif isinstance(value, int):
                checked_settings[key] = int(new_value)
            else:
                checked_settings[key] = new_value

        return checked_settings

    def load(self):
        """Load settings from file, applying environment overrides on top."""

        try:
            with open(self.settings_file, "r", encoding="utf-8") as file:
                settings_dict = json.loads(file.read())

            self.settings = AppModel.model_validate(
                self.check_environment(settings_dict or {}, ENV_PREFIX)
            )
        except ValidationError as e:
            logger.error(f"Settings validation failed:\n{format_validation_error(e)}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing settings file: {e}")
            raise


def format_validation_error(e: ValidationError) -> str:
    """Format validation errors in a user-friendly way"""

    messages = list[str]()

    for error in e.errors():
        field = ".".join(str(x) for x in error["loc"])
        messages.append(f"• {field}: {error.get('msg')}")

    return "\n".join(messages)


settings_manager = SettingsManager()
