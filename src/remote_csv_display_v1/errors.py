from __future__ import annotations


class RemoteCsvError(Exception):
    """Base failure for the fetch/render pipeline.

    ``placeholder`` is what the viewer sees instead of the widget. It must stay
    inert markup and never carry the internal message.
    """

    code = "remote_csv_error"
    placeholder = "<!-- CSV data is unavailable. -->"


class UnsafeUrlError(RemoteCsvError):
    code = "unsafe_url"
    placeholder = "<!-- Invalid or disallowed URL. Requests to local or private networks are blocked. -->"


class TimeCalculationError(RemoteCsvError):
    code = "time_error"
    placeholder = "<!-- Timezone or Date calculation error. -->"


class FetchError(RemoteCsvError):
    code = "fetch_error"
    placeholder = "<!-- CSV data could not be retrieved at this time. -->"


class EmptyBodyError(RemoteCsvError):
    code = "empty_body"
    placeholder = "<!-- Fetched CSV file is empty. -->"


class MalformedCsvError(RemoteCsvError):
    code = "malformed_csv"
    placeholder = "<!-- CSV data is malformed or has no content. -->"


class UnknownColumnError(RemoteCsvError):
    code = "unknown_column"
    placeholder = "<!-- Grouped timeline column not found in CSV header. -->"


class InvalidTimelineParamsError(RemoteCsvError):
    code = "invalid_timeline_params"
    placeholder = "<!-- grouped-timeline requires exactly 4 column names. -->"
