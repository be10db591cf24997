# src/ctrwatch/core/config.py

import logging
import os

from dotenv import load_dotenv

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "t", "y", "yes")


class Config:
    """
    Handles the collector's configuration by loading values from environment variables.

    Values are resolved when the instance is created so tests (and callers that
    tweak the environment) get a fresh view by instantiating a new Config.
    """

    def __init__(self):
        # --- Metrics endpoint ---
        self.METRICS_URL = os.getenv("METRICS_URL", "http://127.0.0.1:1338/v1/metrics")
        self.METRIC_INTERVAL = float(os.getenv("METRIC_INTERVAL", "10"))
        self.UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "10"))

        # --- containerd ---
        self.CONTAINERD_SOCKET = os.getenv("CONTAINERD_SOCKET", "/run/containerd/containerd.sock")
        self.CONTAINERD_NAMESPACE = os.getenv("CONTAINERD_NAMESPACE", "k8s.io")
        self.HOSTNAME_FILE = os.getenv("HOSTNAME_FILE", "/etc/k8s-hostname")

        # --- ELASTICSEARCH VARIABLES ---
        self.ELASTICSEARCH_HOSTS = os.getenv("ELASTICSEARCH_HOSTS", "http://localhost:9200")
        self.ELASTICSEARCH_USER = self._get_secret("ELASTICSEARCH_USER")
        self.ELASTICSEARCH_PASSWORD = self._get_secret("ELASTICSEARCH_PASSWORD")
        self.ELASTICSEARCH_VERIFY_CERTS = _as_bool(os.getenv("ELASTICSEARCH_VERIFY_CERTS", "True"))
        self.ELASTICSEARCH_INDEX_PREFIX = os.getenv("ELASTICSEARCH_INDEX_PREFIX", "docker")

        # --- Batching ---
        self.FLUSH_MAX_CYCLES = int(os.getenv("FLUSH_MAX_CYCLES", "10"))
        self.FLUSH_MAX_DOCUMENTS = int(os.getenv("FLUSH_MAX_DOCUMENTS", "2000"))

        # --- Logging variables ---
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (Docker secret/volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/ctrwatch/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    def validate_instance(self):
        if self.METRIC_INTERVAL <= 0:
            raise ValueError("METRIC_INTERVAL must be a positive number of seconds.")
        if self.UPSTREAM_TIMEOUT <= 0:
            raise ValueError("UPSTREAM_TIMEOUT must be a positive number of seconds.")
        if self.FLUSH_MAX_CYCLES <= 0 or self.FLUSH_MAX_DOCUMENTS <= 0:
            raise ValueError("FLUSH_MAX_CYCLES and FLUSH_MAX_DOCUMENTS must be positive.")
        if not self.ELASTICSEARCH_INDEX_PREFIX:
            raise ValueError("ELASTICSEARCH_INDEX_PREFIX must not be empty.")
        if not self.METRICS_URL:
            raise ValueError("METRICS_URL must be set.")
        if bool(self.ELASTICSEARCH_USER) != bool(self.ELASTICSEARCH_PASSWORD):
            logging.warning("Only one of ELASTICSEARCH_USER / ELASTICSEARCH_PASSWORD is set; ignoring auth.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
