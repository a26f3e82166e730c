from __future__ import annotations

from typing import Optional


class IngestionError(Exception):
    """Base class for upload failures. `message` is shown to the user verbatim."""

    default_message = "Dosya işlenirken bilinmeyen bir hata oluştu."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnsupportedFormat(IngestionError):
    default_message = "Desteklenmeyen dosya formatı. Lütfen Excel veya CSV dosyası yükleyin."


class EmptyFile(IngestionError):
    default_message = (
        "Dosya yetersiz veri içeriyor. Lütfen en az bir başlık satırı ve bir veri satırı içeren bir dosya yükleyin."
    )


class NoDataRows(IngestionError):
    default_message = "Dosyada geçerli veri satırı bulunamadı."


class UnknownIngestionFailure(IngestionError):
    @classmethod
    def wrap(cls, exc: BaseException) -> "UnknownIngestionFailure":
        text = str(exc).strip()
        err = cls(text or None)
        err.__cause__ = exc
        return err


class WorkspaceError(Exception):
    pass


class UploadInProgress(WorkspaceError):
    def __init__(self):
        super().__init__("Bir dosya zaten yükleniyor.")


class UnknownChart(WorkspaceError):
    def __init__(self, chart_id: str):
        self.chart_id = chart_id
        super().__init__(f"Grafik bulunamadı: {chart_id}")


class NothingToPin(WorkspaceError):
    def __init__(self):
        super().__init__("Sabitlenecek grafik yok. Önce bir dosya yükleyin.")


class UnknownSession(WorkspaceError):
    def __init__(self, session: str):
        self.session = session
        super().__init__(f"Oturum bulunamadı: {session}")
