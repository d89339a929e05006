import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

import requests

from ...utils.logger import get_logger
from .models import get_model_by_id

ProgressCallback = Callable[[int, int], None]
StatusCallback = Callable[[str], None]

DOWNLOAD_TIMEOUT_SECONDS = 30


class ModelDownloader:
    def __init__(self, timeout: float = DOWNLOAD_TIMEOUT_SECONDS):
        self._cancelled = False
        self._timeout = timeout
        self._logger = get_logger(__name__)

    def download(
        self,
        model_id: str,
        models_dir: Path,
        on_progress: Optional[ProgressCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> bool:
        self._cancelled = False

        model_info = get_model_by_id(model_id)
        if not model_info:
            raise ValueError(f"Unknown model: {model_id}")

        models_dir.mkdir(parents=True, exist_ok=True)
        target = models_dir / model_info.filename
        if target.is_file() and target.stat().st_size > 0:
            self._logger.info(f"Model {model_id} already downloaded: {target}")
            return True

        url = model_info.url
        self._logger.info(f"Downloading model from {url}")

        if on_status:
            on_status(f"Downloading {model_info.name}...")

        tmp_path: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=models_dir, suffix=".part", delete=False
            ) as tmp_file:
                tmp_path = tmp_file.name

                # Download with progress
                response = requests.get(url, stream=True, timeout=self._timeout)
                response.raise_for_status()

                total_size = int(response.headers.get("content-length", 0))
                downloaded = 0
                chunk_size = 1024 * 1024

                for chunk in response.iter_content(chunk_size=chunk_size):
                    if self._cancelled:
                        self._logger.info("Download cancelled")
                        return False

                    tmp_file.write(chunk)
                    downloaded += len(chunk)

                    if on_progress and total_size > 0:
                        on_progress(downloaded, total_size)

            os.replace(tmp_path, target)
            tmp_path = None

            self._logger.info(f"Model {model_id} downloaded successfully")
            if on_status:
                on_status("Model downloaded successfully")
            return True

        except requests.RequestException as e:
            self._logger.error(f"Download failed: {e}")
            raise
        finally:
            # Cleanup partial download
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def cancel(self) -> None:
        self._cancelled = True
