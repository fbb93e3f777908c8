import io
import logging
import os

import pandas as pd
import requests

from shooting_eda.config import Config
from shooting_eda.errors import DataUnavailable

logger = logging.getLogger(__name__)


class ShootingFetcher:
    """Reads the raw shooting CSV from the NYC Open Data export or a local copy."""

    def __init__(self, timeout=None):
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT

    @staticmethod
    def is_url(source):
        return str(source).lower().startswith(("http://", "https://"))

    def fetch(self, source):
        """Returns the raw table with every column kept as text."""
        if self.is_url(source):
            buffer = io.StringIO(self._download(source))
            return self._parse(buffer, source)

        if not os.path.exists(source):
            raise DataUnavailable(f"Source file not found: {source}")
        return self._parse(source, source)

    def _download(self, url):
        logger.info("Downloading NYPD shooting data from %s", url)
        try:
            resp = requests.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise DataUnavailable(f"Download failed for {url}: {e}") from e
        return resp.text

    def _parse(self, handle, source):
        try:
            # Text dtype keeps odd age codes ("1020") and flags untouched for the processor
            return pd.read_csv(handle, dtype=str)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise DataUnavailable(f"Could not parse CSV from {source}: {e}") from e
