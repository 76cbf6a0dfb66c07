from dataclasses import dataclass
import orjson

from bundle_dumper.initialize import DEFAULT_API_URL


@dataclass
class ClientConfiguration:
    api_url: str = DEFAULT_API_URL
    access_token: str = None
    # (connect, read) timeouts in seconds
    timeout: tuple = (30, 120)
    max_retries: int = 5
    backoff_factor: float = 1.0

    @staticmethod
    def from_json(json_str: str):
        data = orjson.loads(json_str)
        if "timeout" in data and isinstance(data["timeout"], list):
            data["timeout"] = tuple(data["timeout"])
        return ClientConfiguration(**data)
