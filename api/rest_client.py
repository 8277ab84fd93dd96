"""
REST API client used by the step definitions.

Every call goes through ``RestClient.request``: it builds the URL and headers,
sends the request, records the raw response body, raises on a non-success
status and only then decodes the body into the shape the caller asked for.
"""
import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from urllib3.util.retry import Retry
from typing import Dict, Any, Optional
import json
import urllib3

from api.json_mapper import json_mapper
from utils.config_loader import config_loader
from utils.custom_exceptions import HttpRequestFailedError
from utils.logger import api_logger

# Disable SSL warnings for test environments
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

DEFAULT_HEADERS = {
    'User-Agent': 'API-BDD-Harness/1.0',
    'Accept': 'application/json'
}


class RestClient:
    """
    Thin wrapper over a ``requests.Session`` bound to one base URL.

    The client keeps only the most recent response: ``last_raw_body`` and
    ``last_status_code`` are overwritten by every call, successful or not.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 config_name: str = 'API',
                 timeout: Optional[float] = None,
                 verify_ssl: Optional[bool] = None):
        """
        Initialize the client.

        Args:
            base_url: Base URL for every endpoint; falls back to the config section
            config_name: Configuration section holding API settings
            timeout: Request timeout in seconds; falls back to config (30s)
            verify_ssl: Whether to verify TLS certificates; falls back to config
        """
        self.config = config_loader.get_api_config(config_name)
        self.base_url = (base_url or self.config.get('base_url', '')).rstrip('/')
        self.default_timeout = timeout if timeout is not None else self.config.get('timeout', 30)
        self.verify_ssl = verify_ssl if verify_ssl is not None else self.config.get('verify_ssl', True)

        if not self.base_url:
            api_logger.warning("REST client created without a base URL")

        self.session = self._create_session()

        self.default_headers = dict(DEFAULT_HEADERS)
        self.custom_headers: Dict[str, str] = dict(self.config.get('headers') or {})

        self.auth_token = self.config.get('token')
        self.auth_type = self.config.get('auth_type', 'bearer')

        self.last_raw_body: Optional[str] = None
        self.last_status_code: Optional[int] = None
        self.last_response: Optional[requests.Response] = None

        api_logger.info(f"REST client initialized with base URL: {self.base_url}")

    def _create_session(self) -> requests.Session:
        """Create a session that never retries: a failed call fails the step."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=Retry(total=0, read=False))
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def set_timeout(self, timeout: float):
        """Set request timeout."""
        self.default_timeout = timeout
        api_logger.debug(f"Set timeout to {timeout} seconds")

    def set_headers(self, headers: Dict[str, str]):
        """Set headers sent with every following request."""
        self.custom_headers.update(headers)
        api_logger.debug(f"Set custom headers: {list(headers)}")

    def set_auth_token(self, token: str, auth_type: Optional[str] = None):
        """Set authentication token."""
        self.auth_token = token
        if auth_type:
            self.auth_type = auth_type
        api_logger.debug("Authentication token set")

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from endpoint."""
        if endpoint.startswith(('http://', 'https://')):
            return endpoint

        endpoint = endpoint.lstrip('/')
        return f"{self.base_url}/{endpoint}"

    def _prepare_headers(self, headers: Optional[Dict[str, str]] = None) -> CaseInsensitiveDict:
        """Merge default, custom, auth and per-call headers; later ones win whatever their case."""
        request_headers = CaseInsensitiveDict(self.default_headers)
        request_headers.update(self.custom_headers)

        if self.auth_token:
            auth_type_lower = self.auth_type.lower()
            if auth_type_lower == 'bearer':
                request_headers['Authorization'] = f"Bearer {self.auth_token}"
            elif auth_type_lower == 'basic':
                request_headers['Authorization'] = f"Basic {self.auth_token}"
            elif auth_type_lower == 'apikey':
                request_headers['X-API-Key'] = self.auth_token

        if headers:
            request_headers.update(headers)

        return request_headers

    def request(self,
                method: str,
                endpoint: str,
                response_type: Any = None,
                body: Any = None,
                headers: Optional[Dict[str, str]] = None,
                raw: bool = False) -> Any:
        """
        Send a request and return the decoded (or raw) response body.

        Args:
            method: HTTP method
            endpoint: Path joined with the base URL, or an absolute URL
            response_type: Shape to decode a successful body into (see JsonMapper)
            body: JSON body, sent only when not None
            headers: Extra headers for this call only
            raw: Return the response text instead of decoding it

        Returns:
            Decoded body, ``None`` for an empty body, or the raw text when ``raw``

        Raises:
            HttpRequestFailedError: If the status code is not 2xx
            requests.exceptions.RequestException: On transport failures
        """
        method = method.upper()
        url = self._build_url(endpoint)
        request_headers = self._prepare_headers(headers)

        data = None
        if body is not None:
            data = json_mapper.dumps(body).encode('utf-8')
            request_headers.setdefault('Content-Type', 'application/json; charset=utf-8')

        api_logger.info(f"{method} {url}")
        if data is not None:
            api_logger.debug(f"Request body: {data.decode('utf-8')}")

        self.last_raw_body = None
        self.last_status_code = None
        self.last_response = None

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=request_headers,
                data=data,
                timeout=self.default_timeout,
                verify=self.verify_ssl
            )
        except requests.exceptions.RequestException as e:
            api_logger.error(f"Request failed: {type(e).__name__} - {e}")
            raise

        if response.encoding is None:
            response.encoding = 'utf-8'

        self.last_response = response
        self.last_status_code = response.status_code
        self.last_raw_body = response.text or None

        api_logger.info(f"Response: {response.status_code} in {response.elapsed.total_seconds():.2f}s")

        if not 200 <= response.status_code < 300:
            api_logger.error(f"{method} {url} failed with status {response.status_code}")
            raise HttpRequestFailedError(response.status_code, self.last_raw_body,
                                         method=method, endpoint=endpoint)

        if raw:
            return self.last_raw_body or ''

        if self.last_raw_body is None or not self.last_raw_body.strip():
            api_logger.debug("Empty response body, nothing to deserialize")
            return None

        try:
            return json_mapper.from_json(self.last_raw_body, response_type)
        except json.JSONDecodeError as e:
            api_logger.error(f"Response body is not valid JSON: {e}")
            raise

    # --- HTTP Method Wrappers ---
    def get(self, endpoint: str, response_type: Any = None,
            headers: Optional[Dict[str, str]] = None) -> Any:
        """Send GET request."""
        return self.request('GET', endpoint, response_type=response_type, headers=headers)

    def get_raw(self, endpoint: str, headers: Optional[Dict[str, str]] = None) -> str:
        """Send GET request and return the response text without decoding."""
        return self.request('GET', endpoint, headers=headers, raw=True)

    def post(self, endpoint: str, response_type: Any = None, body: Any = None,
             headers: Optional[Dict[str, str]] = None) -> Any:
        """Send POST request."""
        return self.request('POST', endpoint, response_type=response_type, body=body, headers=headers)

    def put(self, endpoint: str, response_type: Any = None, body: Any = None,
            headers: Optional[Dict[str, str]] = None) -> Any:
        """Send PUT request."""
        return self.request('PUT', endpoint, response_type=response_type, body=body, headers=headers)

    def delete(self, endpoint: str, response_type: Any = None,
               headers: Optional[Dict[str, str]] = None) -> Any:
        """Send DELETE request."""
        return self.request('DELETE', endpoint, response_type=response_type, headers=headers)

    def close(self):
        """Close the session."""
        self.session.close()
        api_logger.debug("REST client session closed")
