import json
import logging
import os

from pydantic import ValidationError

from cristat.utils.singleton import Singleton
from cristat.utils.containerd.schemas import CRIConfig

# LogKCld reads its settings from here, so this module logs through stdlib directly
_log = logging.getLogger(__name__)

DEFAULT_LOGGING = {
    "level": "INFO",
    "log_file": None,
    "format": "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s",
}


class _ReadConfig:

    def __init__(self, base_dir=None) -> None:
        base_dir = base_dir or os.environ.get("CRISTAT_CONFIG_DIR")
        if base_dir is not None:
            self.base_dir = os.path.join(base_dir, 'config')
        else:
            self.base_dir = 'config/'
        self.file_path = os.path.join(self.base_dir, 'config.json')
        self._config_data = {}
        self.load_config()

    @property
    def config_dir(self) -> str:
        return self.base_dir

    def load_config(self) -> None:
        try:
            with open(self.file_path, 'r') as file:
                data = json.load(file)
        except FileNotFoundError:
            _log.debug(f"no config file at {self.file_path}, using defaults")
            return
        except (OSError, json.JSONDecodeError) as e:
            _log.warning(f"failed to read config {self.file_path}: {e}, using defaults")
            return
        if not isinstance(data, dict):
            _log.warning(f"config {self.file_path} is not a JSON object, using defaults")
            return
        self._config_data = data

    @property
    def logging_config(self) -> dict:
        section = self._config_data.get('logging') or {}
        if not isinstance(section, dict):
            _log.warning(f"'logging' in {self.file_path} is not a JSON object, using defaults")
            section = {}
        return {**DEFAULT_LOGGING, **section}

    @property
    def cri_config(self) -> CRIConfig:
        """CRI client settings, with CONTAINERD_SOCKET / CRI_QUERY_TIMEOUT taking precedence.

        Raises pydantic.ValidationError when the ``cri`` section is invalid.
        """
        section = self._config_data.get('cri', {})
        try:
            if not isinstance(section, dict):
                # pydantic reports a non-object section as a ValidationError
                return CRIConfig.model_validate(section)
            section = dict(section)
            if sock := os.environ.get("CONTAINERD_SOCKET"):
                section['socket_path'] = sock
            if timeout := os.environ.get("CRI_QUERY_TIMEOUT"):
                section['query_timeout'] = timeout
            return CRIConfig(**section)
        except ValidationError as e:
            _log.error(f"invalid cri config in {self.file_path}: {e}")
            raise


class ReadConfig(_ReadConfig, metaclass=Singleton):
    pass
