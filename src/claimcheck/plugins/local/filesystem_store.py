# src/claimcheck/plugins/local/filesystem_store.py
"""
Filesystem object store for local runs and tests.

Objects are laid out as:

    base_path/<namespace>/<container>/<key>

Keys may contain "/" and become nested directories. Every resolved path is
checked to stay inside base_path, since keys come from stream messages.
"""

from __future__ import annotations

from pathlib import Path

from claimcheck.contracts import GatewayResponse

__all__ = ["FilesystemObjectStore"]

_OK = 200
_BAD_REQUEST = 400
_NOT_FOUND = 404
_SERVER_ERROR = 500


class FilesystemObjectStore:
    """ObjectStoreGateway over a local directory tree.

    Args:
        base_path: Root directory for all namespaces
        namespace: Namespace reported by resolve_namespace()
    """

    def __init__(self, base_path: Path, *, namespace: str = "local") -> None:
        self.base_path = base_path
        self.namespace = namespace
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, namespace: str, container: str, key: str) -> Path:
        """Get filesystem path for an object.

        Raises:
            ValueError: If a component is empty or the resolved path escapes base_path
        """
        if not namespace or not container or not key:
            raise ValueError("namespace, container and key must be non-empty")
        if "/" in namespace or "/" in container:
            raise ValueError("namespace and container must not contain '/'")

        path = self.base_path / namespace / container / key
        try:
            resolved = path.resolve()
            container_root = (self.base_path / namespace / container).resolve()
        except OSError as e:
            raise ValueError(f"path resolution failed for {key!r}") from e
        if resolved == container_root or not resolved.is_relative_to(container_root):
            raise ValueError(f"path traversal detected, {resolved} is not under {container_root}")
        return path

    def resolve_namespace(self, compartment_id: str) -> GatewayResponse[str]:
        return GatewayResponse(status=_OK, data=self.namespace)

    def put(self, namespace: str, container: str, key: str, data: bytes) -> GatewayResponse[None]:
        try:
            path = self._path_for(namespace, container, key)
        except ValueError as e:
            return GatewayResponse(status=_BAD_REQUEST, detail=str(e))

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            return GatewayResponse(status=_SERVER_ERROR, detail=str(e))
        return GatewayResponse(status=_OK)

    def get(self, namespace: str, container: str, key: str) -> GatewayResponse[bytes]:
        try:
            path = self._path_for(namespace, container, key)
        except ValueError as e:
            return GatewayResponse(status=_BAD_REQUEST, detail=str(e))

        if not path.is_file():
            return GatewayResponse(status=_NOT_FOUND, detail=f"object not found: {namespace}/{container}/{key}")
        try:
            return GatewayResponse(status=_OK, data=path.read_bytes())
        except OSError as e:
            return GatewayResponse(status=_SERVER_ERROR, detail=str(e))
