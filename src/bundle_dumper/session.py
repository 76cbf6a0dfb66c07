import requests
from requests.adapters import HTTPAdapter
from urllib3 import Retry

from bundle_dumper.client_configuration import ClientConfiguration


def create_session(configuration: ClientConfiguration) -> requests.Session:
    """
    Create a session for the Arweave gateway

    Network requests have retries with an exponential backoff: every chunk
    fetch is retried up to `max_retries` times on connection errors and on
    transient gateway statuses before the failure is surfaced.

    Args:
        configuration: the ClientConfiguration to use

    Returns: the session
    """
    retry_strategy = Retry(
        total=configuration.max_retries,
        backoff_factor=configuration.backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    if configuration.access_token is not None:
        session.headers["Authorization"] = "Bearer " + configuration.access_token
    return session
