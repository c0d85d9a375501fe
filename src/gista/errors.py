from __future__ import annotations


class GistaError(RuntimeError):
    pass


class IngestionError(GistaError):
    def __init__(self, line_no: int, kind: str, detail: str = "") -> None:
        self.line_no = line_no
        self.kind = kind
        self.detail = detail
        msg = f"Stats parsing failed @ line {line_no}. State: {kind}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class ScriptError(GistaError):
    def __init__(self, line_no: int, message: str = "", source: str = "") -> None:
        self.line_no = line_no
        self.message = message
        self.source = source
        where = f"line: {line_no}"
        if source:
            where += f" in file {source}"
        super().__init__(f"Error @ {where} - {message}" if message else f"Error @ {where}")
