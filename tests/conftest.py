import sys
import types

import pytest

# Ensure project root is importable (so `import cli` and `import dcr` work without installing)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


def make_container(cid: str, image: str = "nginx", image_id: str | None = None, created: int = 1_700_000_000):
    """Mimic what docker-py returns from containers.list(sparse=True)."""
    attrs = {"Id": cid, "Image": image, "ImageID": image_id or f"sha256:{cid}-img", "Created": created}
    return types.SimpleNamespace(id=cid, attrs=attrs)


def make_pod(node: str, *container_ids, init=(), ephemeral=()):
    def statuses(ids):
        return [types.SimpleNamespace(container_id=cid) for cid in ids]

    return types.SimpleNamespace(
        spec=types.SimpleNamespace(node_name=node),
        status=types.SimpleNamespace(
            container_statuses=statuses(container_ids),
            init_container_statuses=statuses(init),
            ephemeral_container_statuses=statuses(ephemeral),
        ),
    )


class FakeDocker:
    def __init__(self, containers=None, list_error=None, stop_error=None):
        self._containers = list(containers or [])
        self.list_error = list_error
        self.stop_error = stop_error
        self.list_calls = []
        self.stop_calls = []
        self.closed = 0
        self.containers = types.SimpleNamespace(list=self._list)
        self.api = types.SimpleNamespace(stop=self._stop)

    def _list(self, **kwargs):
        self.list_calls.append(kwargs)
        if self.list_error:
            raise self.list_error
        return list(self._containers)

    def _stop(self, container_id, timeout=None):
        self.stop_calls.append((container_id, timeout))
        if self.stop_error:
            raise self.stop_error

    def close(self):
        self.closed += 1


class FakeCoreV1:
    def __init__(self, pods=None, list_error=None, event_error=None, node=None):
        self.pods = list(pods or [])
        self.list_error = list_error
        self.event_error = event_error
        self.node = node
        self.list_calls = []
        self.events = []

    def list_pod_for_all_namespaces(self, **kwargs):
        self.list_calls.append(kwargs)
        if self.list_error:
            raise self.list_error
        return types.SimpleNamespace(items=list(self.pods))

    def read_node(self, name):
        if self.node is None:
            from kubernetes.client.exceptions import ApiException

            raise ApiException(status=404, reason="Not Found")
        return self.node

    def create_namespaced_event(self, namespace, body):
        if self.event_error:
            raise self.event_error
        self.events.append((namespace, body))
        return body


@pytest.fixture
def node():
    return types.SimpleNamespace(metadata=types.SimpleNamespace(name="node-1", uid="uid-node-1"))
