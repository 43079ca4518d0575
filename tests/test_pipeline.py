import importlib
import sys
import textwrap
from pathlib import Path

import pytest

from routespec.config import GeneratorSettings
from routespec.domain.models import Operation
from routespec.errors import (
    ConfigurationError,
    GrammarError,
    MutatorError,
    RegistrationError,
    ResolutionError,
)
from routespec.openapi.generator import OperationInfo
from routespec.openapi.metadata import PackageMetadata
from routespec.orchestrator.pipeline import generate, routes_with_openapi, spec_hash

MODULES = ("rs_svc_users", "rs_svc_hooks")

USERS_SRC = """
from routespec.openapi.decorators import get, post


@get("/users")
def list(limit: int = 50):
    \"\"\"List users.\"\"\"
    return []


@post("/users")
def create(name: str):
    return {"name": name}


@get("/users/{user_id}")
def read(user_id: int):
    return {"user_id": user_id}


@get("/items")
def items():
    return []


def undecorated():
    return None
"""

HOOKS_SRC = """
from routespec.domain.models import Server

SEEN = []


def tweak(spec):
    SEEN.append((spec.info.title, spec.operation_ids()))
    spec.info.description = "tweaked"


def explode(spec):
    raise RuntimeError("boom")


def add_server(spec):
    spec.servers = [Server(url="https://api.example")]
"""


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


@pytest.fixture
def ns(tmp_path: Path, monkeypatch):
    write(tmp_path / "rs_svc_users.py", USERS_SRC)
    write(tmp_path / "rs_svc_hooks.py", HOOKS_SRC)
    monkeypatch.syspath_prepend(str(tmp_path))
    for name in MODULES:
        sys.modules.pop(name, None)
    yield {
        "users": importlib.import_module("rs_svc_users"),
        "mymod": importlib.import_module("rs_svc_hooks"),
    }
    for name in MODULES:
        sys.modules.pop(name, None)


def meta(**kw) -> PackageMetadata:
    base = {"name": "svc", "version": "1.0.0"}
    base.update(kw)
    return PackageMetadata(**base)


def test_reference_scenario(ns):
    result = generate(
        "spec: mymod::tweak; users::list, users::create",
        meta(description="", repository_url="", homepage_url=""),
        namespace=ns,
        settings=GeneratorSettings(),
    )
    doc = result.document

    assert doc.operation_ids() == ["users_list", "users_create"]
    assert ns["mymod"].SEEN == [("svc", ["users_list", "users_create"])]
    assert len(result.routes) == 3
    assert result.routes[-1].path == "/openapi.json"

    info = doc.to_dict()["info"]
    assert info["title"] == "svc"
    assert info["version"] == "1.0.0"
    assert "contact" not in info
    # only the mutator set a description
    assert info["description"] == "tweaked"


def test_scenario_without_mutator_omits_description_and_contact(ns):
    doc = generate("users::list, users::create", meta(), namespace=ns).document
    info = doc.to_dict()["info"]
    assert "description" not in info
    assert "contact" not in info


@pytest.mark.parametrize(
    "decl,n",
    [
        ("users::list", 1),
        ("users::list, users::create", 2),
        ("users::list, users::create, users::read,", 3),
    ],
)
def test_route_count_is_declared_plus_one(ns, decl, n):
    routes = routes_with_openapi(decl, meta(), namespace=ns)
    assert len(routes) == n + 1
    assert [r.name for r in routes][-1] == "openapi_spec"
    assert sum(1 for r in routes if r.name == "openapi_spec") == 1


def test_registration_and_route_order_follow_declaration(ns):
    result = generate("users::read, users::create, users::list", meta(), namespace=ns)
    assert result.document.operation_ids() == ["users_read", "users_create", "users_list"]
    assert [r.name for r in result.routes] == ["read", "create", "list", "openapi_spec"]


def test_resolution_by_import_without_namespace(ns):
    result = generate("rs_svc_users::list", meta())
    assert result.document.operation_ids() == ["rs_svc_users_list"]


def test_mutator_sees_full_document_and_changes_persist(ns):
    result = generate("spec: mymod::add_server; users::list", meta(), namespace=ns)
    assert result.document.to_dict()["servers"] == [{"url": "https://api.example"}]


def test_generation_is_deterministic(ns):
    args = ("spec: mymod::tweak; users::list, users::create, users::read", meta(repository_url="https://repo"))
    first = generate(*args, namespace=ns).document
    second = generate(*args, namespace=ns).document
    assert first.to_json() == second.to_json()
    assert spec_hash(first) == spec_hash(second)


def test_contact_last_write_wins(ns):
    doc = generate(
        "users::list",
        meta(repository_url="https://repo", homepage_url="https://home"),
        namespace=ns,
    ).document
    assert doc.to_dict()["info"]["contact"] == {"name": "Homepage", "url": "https://home"}


def test_custom_json_path(ns):
    routes = routes_with_openapi("users::list", meta(), namespace=ns, settings=GeneratorSettings(json_path="/spec"))
    assert routes[-1].path == "/spec"


def test_zero_routes_is_a_grammar_error(ns):
    with pytest.raises(GrammarError):
        generate("spec: mymod::tweak;", meta(), namespace=ns)
    assert ns["mymod"].SEEN == []


def test_route_without_companion_is_a_registration_error(ns):
    with pytest.raises(RegistrationError) as ei:
        generate("users::list, users::undecorated", meta(), namespace=ns)
    assert ei.value.route == "users::undecorated"
    assert "users::undecorated" in str(ei.value)
    assert isinstance(ei.value.__cause__, ResolutionError)


def test_failing_companion_is_a_registration_error():
    def boom(gen, op_id):
        raise ValueError("bad fragment")

    with pytest.raises(RegistrationError) as ei:
        generate("handler", meta(), namespace={"handler": boom, "openapi_add_operation_for_handler_": boom})
    assert isinstance(ei.value.__cause__, ValueError)


def test_operations_follow_registration_order_across_paths(ns):
    doc = generate("users::list, users::items, users::create", meta(), namespace=ns).document
    assert doc.operation_ids() == ["users_list", "users_items", "users_create"]
    assert [(p, m) for p, m, _ in doc.operations()] == [
        ("/users", "get"),
        ("/items", "get"),
        ("/users", "post"),
    ]
    # paths still group methods under one path item
    assert list(doc.paths) == ["/users", "/items"]


def test_companion_with_unknown_method_is_a_registration_error():
    def handler():
        return None

    def add(gen, op_id):
        gen.register(op_id, OperationInfo(path="/x", method="FOO", operation=Operation()))

    with pytest.raises(RegistrationError) as ei:
        generate("handler", meta(), namespace={"handler": handler, "openapi_add_operation_for_handler_": add})
    assert ei.value.route == "handler"
    assert isinstance(ei.value.__cause__, ValueError)


def test_missing_package_version_is_fatal(ns):
    with pytest.raises(ConfigurationError):
        generate("users::list", meta(version=""), namespace=ns)


def test_failing_mutator(ns):
    with pytest.raises(MutatorError) as ei:
        generate("spec: mymod::explode; users::list", meta(), namespace=ns)
    assert ei.value.path == "mymod::explode"


def test_unknown_mutator(ns):
    with pytest.raises(ResolutionError):
        generate("spec: mymod::nope; users::list", meta(), namespace=ns)


class RecordingBinder:
    def __init__(self):
        self.events = []

    def bind(self, handler):
        self.events.append(("bind", handler.__name__))
        return handler.__name__

    def bind_spec(self, document, path):
        self.events.append(("spec", path, document.info.description))
        return ("spec", path)


def test_hand_written_companions_custom_rule_and_binder():
    def ping():
        return "pong"

    def register_ping(gen, op_id):
        gen.register(op_id, OperationInfo(path="/ping", method="get", operation=Operation(summary="Ping")))

    def tweak(doc):
        doc.info.description = "after mutator"

    binder = RecordingBinder()
    result = generate(
        "spec: tweak; ping",
        meta(),
        namespace={"ping": ping, "register_ping": register_ping, "tweak": tweak},
        naming_rule=lambda n: f"register_{n}",
        binder=binder,
    )

    assert result.routes == ("ping", ("spec", "/openapi.json"))
    assert result.document.paths["/ping"]["get"].operation_id == "ping"
    # route table is built after the mutator ran
    assert binder.events == [("bind", "ping"), ("spec", "/openapi.json", "after mutator")]


def test_binding_failure_names_route():
    def ping():
        return "pong"

    def add(gen, op_id):
        gen.register(op_id, OperationInfo(path="/ping", method="get", operation=Operation()))

    # companion exists but the handler carries no route decorator
    with pytest.raises(RegistrationError) as ei:
        generate("ping", meta(), namespace={"ping": ping, "openapi_add_operation_for_ping_": add})
    assert ei.value.route == "ping"
    assert isinstance(ei.value.__cause__, TypeError)
