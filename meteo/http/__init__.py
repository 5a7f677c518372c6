from .client import FetchClient, FetchResult, RequestConfig
from .socrata import SocrataClient, soql_quote

__all__ = ["FetchClient", "FetchResult", "RequestConfig", "SocrataClient", "soql_quote"]
