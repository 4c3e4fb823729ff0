"""HTTP client for the seed wiki API (backlink, edit and discuss endpoints)."""

import requests
import logging
from typing import Dict, List, Optional, Any
from urllib.parse import quote

from .config import WikiConfig, DEFAULT_PERMISSION_DENIED_PHRASE
from .models import BacklinkEntry, Discussion, PageSnapshot


class WikiAPIError(Exception):
    """Exception raised for wiki API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class TransportError(WikiAPIError):
    """Network, DNS or timeout failure before a response was received."""


class DecodeError(WikiAPIError):
    """Response body was not the JSON shape the endpoint promises."""


class PermissionDeniedError(WikiAPIError):
    """The wiki refused edit access to a document."""


class HTTPStatusError(WikiAPIError):
    """The server answered with an unsuccessful status code."""


class WikiClient:
    """Client for the seed wiki HTTP API.

    Every call authenticates with the bearer token from the configuration and
    makes exactly one request attempt; retrying is left to the caller.
    """

    def __init__(self, config: WikiConfig, detect_permission_denied: bool = True,
                 permission_denied_phrase: str = DEFAULT_PERMISSION_DENIED_PHRASE):
        self.config = config
        self.base_url = config.domain
        self.detect_permission_denied = detect_permission_denied
        self.permission_denied_phrase = permission_denied_phrase
        self.session = requests.Session()
        self.logger = logging.getLogger(__name__)

        self.session.headers.update({
            'Accept': 'application/json',
            'Authorization': f'Bearer {config.token}',
        })

    @staticmethod
    def _document_path(endpoint: str, title: str) -> str:
        return f"/api/{endpoint}/{quote(title, safe='')}"

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """Send a single request, mapping transport failures to TransportError."""
        url = self.base_url + path
        self.logger.debug(f"{method} {url} params={kwargs.get('params')}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                timeout=self.config.request_timeout,
                **kwargs
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request failed: {e}")
            raise TransportError(f"Request failed: {e}")

        self.logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(
                f"Malformed JSON response: {e}",
                status_code=response.status_code,
                response_data=response.text,
            )

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if response.status_code < 300:
            return
        try:
            error_data = response.json()
        except ValueError:
            error_data = {"message": response.text}
        raise HTTPStatusError(
            f"status {response.status_code} {response.reason or ''}".strip(),
            status_code=response.status_code,
            response_data=error_data,
        )

    def fetch_backlinks(self, title: str, namespace: str) -> List[BacklinkEntry]:
        """
        List documents directly linking to a title within one namespace.

        Args:
            title: Target document title
            namespace: Namespace to search

        Returns:
            Backlink entries whose relation kind is a plain link
        """
        path = self._document_path('backlink', title)
        params: Dict[str, str] = {'namespace': namespace}
        entries: List[BacklinkEntry] = []
        seen_cursors = set()

        while True:
            response = self._send('GET', path, params=params)
            self._raise_for_status(response)
            data = self._decode(response)

            if not isinstance(data, dict) or not isinstance(data.get('backlinks', []), list):
                raise DecodeError("Unexpected backlink response shape", response_data=data)

            try:
                page = [BacklinkEntry(**item) for item in data.get('backlinks') or []]
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Invalid backlink entry: {e}", response_data=data)
            entries.extend(entry for entry in page if entry.is_link)

            # Results are paged; 'from' names the first document of the next page
            cursor = data.get('from')
            if not cursor or cursor in seen_cursors:
                break
            seen_cursors.add(cursor)
            params = {'namespace': namespace, 'from': cursor}

        self.logger.info(f"Found {len(entries)} linking documents for '{title}' in namespace '{namespace}'")
        return entries

    def fetch_page(self, title: str) -> PageSnapshot:
        """
        Fetch a document body together with a fresh edit token.

        Raises:
            PermissionDeniedError: the status message reports missing edit rights
            DecodeError: the response is not JSON or its fields have the wrong types
            HTTPStatusError: the server answered with an error status
        """
        response = self._send('GET', self._document_path('edit', title))
        data = self._decode(response)
        if not isinstance(data, dict):
            raise DecodeError("Unexpected edit response shape", status_code=response.status_code, response_data=data)

        status = data.get('status') or ''
        if not isinstance(status, str):
            raise DecodeError(f"Edit response for '{title}' has a non-text status", response_data=data)
        if self.detect_permission_denied and self.permission_denied_phrase in status:
            raise PermissionDeniedError(status, status_code=response.status_code, response_data=data)

        if response.status_code >= 400:
            message = status or f"status {response.status_code} {response.reason or ''}".strip()
            raise HTTPStatusError(message, status_code=response.status_code, response_data=data)

        token = data.get('token')
        if not token:
            raise DecodeError(f"Edit response for '{title}' has no token", response_data=data)

        try:
            return PageSnapshot(
                title=title,
                body=data.get('text') or '',
                edit_token=token,
                exists=bool(data.get('exists', True)),
            )
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid edit response for '{title}': {e}", response_data=data)

    def submit_edit(self, title: str, body: str, edit_token: str, log_message: str) -> None:
        """Submit a new document body using a single-use edit token."""
        payload = {'text': body, 'log': log_message, 'token': edit_token}
        response = self._send('POST', self._document_path('edit', title), json=payload)
        self._raise_for_status(response)
        self.logger.debug(f"Edited: {title}")

    def list_discussions(self, title: str) -> List[Discussion]:
        """List discussion threads attached to a document."""
        response = self._send('GET', self._document_path('discuss', title))
        self._raise_for_status(response)
        data = self._decode(response)

        if data is None:
            return []
        if not isinstance(data, list):
            raise DecodeError("Unexpected discussion response shape", response_data=data)

        try:
            return [Discussion(**item) for item in data]
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid discussion entry: {e}", response_data=data)

    def query_open_discussions(self, title: str) -> bool:
        """Return True if any discussion on the document is open."""
        return any(discussion.is_open for discussion in self.list_discussions(title))
