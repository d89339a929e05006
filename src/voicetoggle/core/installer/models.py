from dataclasses import dataclass
from typing import List, Optional

HUGGINGFACE_BASE = "https://huggingface.co/ggerganov/whisper.cpp/resolve/main"


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    filename: str

    @property
    def url(self) -> str:
        return f"{HUGGINGFACE_BASE}/{self.filename}"


AVAILABLE_MODELS: List[ModelInfo] = [
    ModelInfo(id="small", name="Whisper Small", filename="ggml-small.bin"),
    ModelInfo(id="medium", name="Whisper Medium", filename="ggml-medium.bin"),
    ModelInfo(id="large", name="Whisper Large v3", filename="ggml-large-v3.bin"),
]

DEFAULT_MODEL = "small"


def get_model_by_id(model_id: str) -> Optional[ModelInfo]:
    for model in AVAILABLE_MODELS:
        if model.id == model_id:
            return model
    return None


def available_model_ids() -> List[str]:
    return [model.id for model in AVAILABLE_MODELS]
