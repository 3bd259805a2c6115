"""Elasticsearch document store backed by the official ``elasticsearch`` client."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError

from ..exceptions import CursorExpiredError, StoreConnectionError, StoreOperationError
from ..store import DocumentStore, ScrollPage

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


@dataclass
class ElasticsearchStoreConfig:
    """Connection settings for one Elasticsearch cluster."""

    hosts: list[str] | None = None
    api_key: str | None = None
    basic_auth: tuple | None = None
    verify_certs: bool = True
    ca_certs: str | None = None
    client_cert: str | None = None
    client_key: str | None = None
    ssl_show_warn: bool = True
    request_timeout: float | None = None
    refresh: bool = False

    def __post_init__(self):
        """Set default hosts if not provided."""
        if self.hosts is None:
            self.hosts = ["http://localhost:9200"]

    @classmethod
    def from_dict(cls, config: dict) -> ElasticsearchStoreConfig:
        """Create from a configuration dictionary.

        Accepts ``hosts`` (list or single URL) or ``host``/``port``; bare
        ``host:port`` values get an ``http://`` scheme.
        """
        if "hosts" in config:
            hosts = config["hosts"]
            if isinstance(hosts, str):
                hosts = [hosts]
        elif "host" in config:
            host = str(config["host"])
            port = config.get("port", 9200)
            if "://" in host:
                hosts = [f"{host}:{port}" if ":" not in host.split("://")[1] else host]
            else:
                hosts = [f"http://{host}:{port}" if ":" not in host else f"http://{host}"]
        else:
            hosts = ["http://localhost:9200"]

        basic_auth = config.get("basic_auth")
        if isinstance(basic_auth, list):
            basic_auth = tuple(basic_auth)

        return cls(
            hosts=[_with_scheme(h) for h in hosts],
            api_key=config.get("api_key"),
            basic_auth=basic_auth,
            verify_certs=config.get("verify_certs", True),
            ca_certs=config.get("ca_certs"),
            client_cert=config.get("client_cert"),
            client_key=config.get("client_key"),
            ssl_show_warn=config.get("ssl_show_warn", True),
            request_timeout=config.get("request_timeout"),
            refresh=config.get("refresh", False),
        )


def create_elasticsearch_client(config: ElasticsearchStoreConfig) -> Elasticsearch:
    """Create a synchronous Elasticsearch client."""
    if config.hosts is None:
        raise ValueError("Elasticsearch hosts configuration is missing")

    client_config: dict[str, Any] = {
        "hosts": config.hosts,
    }

    if config.api_key:
        client_config["api_key"] = config.api_key
    elif config.basic_auth:
        client_config["basic_auth"] = config.basic_auth

    if config.ca_certs:
        client_config["ca_certs"] = config.ca_certs
    if config.client_cert:
        client_config["client_cert"] = config.client_cert
    if config.client_key:
        client_config["client_key"] = config.client_key
    if config.request_timeout is not None:
        client_config["request_timeout"] = config.request_timeout

    client_config["verify_certs"] = config.verify_certs
    client_config["ssl_show_warn"] = config.ssl_show_warn

    return Elasticsearch(**client_config)


class ElasticsearchStore(DocumentStore):
    """DocumentStore over an Elasticsearch cluster.

    Client exceptions are translated at this boundary: transport failures
    become StoreConnectionError, an unknown scroll id CursorExpiredError,
    and any other API error StoreOperationError.
    """

    name = "elasticsearch"

    def __init__(
        self,
        config: ElasticsearchStoreConfig | dict[str, Any] | None = None,
        client: Elasticsearch | None = None,
    ):
        """Initialize the store.

        Args:
            config: Connection settings (dataclass or dictionary)
            client: Pre-built client; when given, ``config`` only supplies
                store options such as ``refresh``
        """
        if config is None or isinstance(config, dict):
            config = ElasticsearchStoreConfig.from_dict(config or {})
        self.config = config
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: dict) -> ElasticsearchStore:
        """Create from config dictionary."""
        return cls(config)

    @property
    def client(self) -> Elasticsearch:
        if self._client is None:
            self._client = create_elasticsearch_client(self.config)
            logger.debug(f"Connected Elasticsearch client to {self.config.hosts}")
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    @contextmanager
    def _errors(self, operation: str, scroll_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except NotFoundError as e:
            if scroll_id is not None:
                raise CursorExpiredError(scroll_id, str(e)) from e
            raise StoreOperationError(operation, str(e), status=404) from e
        except ApiError as e:
            raise StoreOperationError(operation, str(e), status=e.meta.status) from e
        except TransportError as e:
            logger.error(f"Connection error during {operation}: {e}")
            raise StoreConnectionError(operation, str(e)) from e

    def open_scroll(self, index, shape_tag, query, size, ttl) -> ScrollPage:
        with self._errors("open_scroll"):
            response = self.client.search(
                index=index,
                query=query or {"match_all": {}},
                size=size,
                scroll=ttl,
                sort=["_doc"],
            )
        body = _body(response)
        return ScrollPage(
            hits=body["hits"]["hits"],
            scroll_id=body.get("_scroll_id"),
            total=_total_hits(body),
        )

    def scroll(self, scroll_id, ttl) -> ScrollPage:
        with self._errors("scroll", scroll_id=scroll_id):
            response = self.client.scroll(scroll_id=scroll_id, scroll=ttl)
        body = _body(response)
        return ScrollPage(hits=body["hits"]["hits"], scroll_id=body.get("_scroll_id"))

    def clear_scroll(self, scroll_id) -> None:
        try:
            with self._errors("clear_scroll"):
                self.client.clear_scroll(scroll_id=scroll_id)
        except StoreOperationError as e:
            if e.status != 404:
                raise
            # already expired on the server side

    def search_page(self, index, shape_tag, query, offset, limit) -> list[dict[str, Any]]:
        with self._errors("search"):
            response = self.client.search(
                index=index,
                query=query or {"match_all": {}},
                from_=offset,
                size=limit,
                sort=["_doc"],
            )
        return _body(response)["hits"]["hits"]

    def bulk(self, index, shape_tag, operations) -> dict[str, Any]:
        with self._errors("bulk"):
            response = self.client.bulk(
                index=index,
                operations=operations,
                refresh=self.config.refresh,
            )
        return _body(response)

    def get_mapping(self, index, shape_tag) -> dict[str, Any]:
        try:
            with self._errors("get_mapping"):
                response = self.client.indices.get_mapping(index=index)
        except StoreOperationError as e:
            if e.status == 404:
                return {}
            raise
        body = _body(response)
        if not body:
            return {}
        # the response is keyed by concrete index name (index may be an alias)
        mappings = next(iter(body.values())).get("mappings") or {}
        if shape_tag in mappings and "properties" not in mappings:
            # clusters that still keep mappings per document type
            return mappings[shape_tag] or {}
        return mappings

    def put_mapping(self, index, shape_tag, mapping) -> bool:
        with self._errors("put_mapping"):
            response = self.client.indices.put_mapping(index=index, body=mapping)
        return bool(_body(response).get("acknowledged"))

    def index_exists(self, index) -> bool:
        with self._errors("index_exists"):
            return bool(self.client.indices.exists(index=index))

    def create_index(self, index, body=None) -> bool:
        body = body or {}
        with self._errors("create_index"):
            response = self.client.indices.create(
                index=index,
                settings=body.get("settings"),
                mappings=body.get("mappings"),
            )
        return bool(_body(response).get("acknowledged"))

    def get_alias(self, alias) -> set[str]:
        try:
            with self._errors("get_alias"):
                response = self.client.indices.get_alias(name=alias)
        except StoreOperationError as e:
            if e.status == 404:
                return set()
            raise
        return set(_body(response).keys())

    def add_alias(self, index, alias) -> bool:
        return self._update_aliases("add", index, alias)

    def remove_alias(self, index, alias) -> bool:
        return self._update_aliases("remove", index, alias)

    def _update_aliases(self, action: str, index: str, alias: str) -> bool:
        with self._errors(f"{action}_alias"):
            response = self.client.indices.update_aliases(
                actions=[{action: {"index": index, "alias": alias}}]
            )
        return bool(_body(response).get("acknowledged"))


def _body(response: Any) -> Any:
    """Plain body of a client response (ObjectApiResponse or dict)."""
    return getattr(response, "body", response)


def _total_hits(body: dict[str, Any]) -> int | None:
    total = body.get("hits", {}).get("total")
    if isinstance(total, dict):
        return total.get("value")
    return total


def _with_scheme(host: str) -> str:
    return host if "://" in host else f"http://{host}"
