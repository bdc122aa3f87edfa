from abc import ABC, abstractmethod


class SourceStore(ABC):
    @abstractmethod
    def load_source(self, document_id: str) -> str:
        pass

    @abstractmethod
    def save_source(self, document_id: str, text: str) -> None:
        pass
