import pytest

from buildstage.tasks import GraphError
from buildstage.tasks import Task
from buildstage.tasks import TaskGraph


def test_prerequisites_deduplicated():
    task = Task("a", ["b", "c", "b"])
    assert task.prerequisites == ("b", "c")


def test_define_twice():
    graph = TaskGraph()
    graph.define("a")
    with pytest.raises(GraphError):
        graph.define("a")


def test_select_prefix():
    graph = TaskGraph()
    for name in ("image:x", "image:x:latest", "images", "build:x"):
        graph.define(name)
    assert graph.select("image:") == ("image:x", "image:x:latest")
    assert graph.select("build:") == ("build:x",)


def test_select_max_depth():
    graph = TaskGraph()
    graph.define("dockerfile:x:latest")
    graph.define("dockerfile:x")
    assert graph.select("dockerfile:", max_depth=1) == ("dockerfile:x",)
    assert graph.select("dockerfile:", max_depth=2) == (
        "dockerfile:x:latest",
        "dockerfile:x",
    )


def test_dangling():
    graph = TaskGraph()
    graph.define("a", ["b", "missing"])
    graph.define("b")
    assert graph.dangling() == (("a", "missing"),)
    graph.validate()
    with pytest.raises(GraphError):
        graph.validate(strict=True)


def test_cycle():
    graph = TaskGraph()
    graph.define("a", ["b"])
    graph.define("b", ["a"])
    with pytest.raises(GraphError):
        graph.validate()


def test_self_cycle():
    graph = TaskGraph()
    graph.define("image:x:builder", ["image:x:builder"])
    with pytest.raises(GraphError):
        graph.validate()


def test_work_graph_closure(capsys):
    graph = TaskGraph()
    graph.define("all", ["a", "b"])
    a = graph.define("a", ["c", "missing"])
    graph.define("b", ["c"])
    c = graph.define("c")
    graph.define("unrelated")

    work_graph = graph.work_graph(["a"])
    assert set(work_graph.keys()) == {a, c}
    assert work_graph[a] == [c]
    assert work_graph[c] == []
    assert "missing" in capsys.readouterr().err


def test_work_graph_unknown_target():
    graph = TaskGraph()
    with pytest.raises(GraphError):
        graph.work_graph(["nope"])


def test_to_dot():
    graph = TaskGraph()
    graph.define("a", ["b", "missing"])
    graph.define("b")
    dot = graph.to_dot()
    assert '"a" -> "b";' in dot
    assert '"a" -> "missing" [style=dashed];' in dot


def test_to_dot_escapes_quotes():
    graph = TaskGraph()
    graph.define('build:say"hi"')
    assert '"build:say\\"hi\\"";' in graph.to_dot()
