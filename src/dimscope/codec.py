"""JSON decoding for filter and metric payloads.

decoding returns either the value or a DecodeError value instead of raising,
so callers spell out their fallback with an isinstance check. the codec holds
no state beyond its compiled TypeAdapters, so one instance is shared freely.
"""

from dataclasses import dataclass

from pydantic import TypeAdapter, ValidationError


@dataclass(frozen=True)
class DecodeError:
    """A payload that didn't decode into the expected shape."""

    payload: str
    message: str


class JsonCodec:
    """Decodes dashboard request payloads with pydantic TypeAdapters.

    strict mode so `{"country": [1]}` is rejected rather than coerced.
    """

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict
        self._string_list = TypeAdapter(list[str])
        self._string_list_map = TypeAdapter(dict[str, list[str]])

    def decode_string_list(self, payload: str) -> list[str] | DecodeError:
        """Decode a JSON array of strings."""
        return self._decode(self._string_list, payload)

    def decode_string_list_map(self, payload: str) -> dict[str, list[str]] | DecodeError:
        """Decode a JSON object mapping names to arrays of strings."""
        return self._decode(self._string_list_map, payload)

    def _decode(self, adapter: TypeAdapter, payload: str):
        try:
            return adapter.validate_json(payload, strict=self.strict)
        except ValidationError as e:
            # pydantic reports bad json and wrong shapes the same way
            return DecodeError(payload=payload, message=_summarize(e))


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if location:
        return f"{first['msg']} at {location}"
    return first["msg"]


DEFAULT_CODEC = JsonCodec()
