from __future__ import annotations


class ProviderApiError(RuntimeError):
    pass
