from psp_web.domain.models import Brief, HookOption
from psp_web.domain.workflow import MODE_SINGLE, WorkflowContext, WorkflowStore


def test_store_creates_context_per_id():
    store = WorkflowStore()
    a = store.get("a")
    a.selected_project_id = "p1"

    assert store.get("a") is a
    assert store.get("b").selected_project_id is None

    store.discard("a")
    assert store.get("a").selected_project_id is None


def test_clear_generation_keeps_project():
    ctx = WorkflowContext(selected_project_id="p1")
    ctx.store_hooks(Brief(niche="n", pillar="p"), [HookOption(code="H1", text="t")])
    ctx.store_results([], MODE_SINGLE)

    ctx.clear_generation()

    assert ctx.selected_project_id == "p1"
    assert ctx.suggested_hooks is None
    assert ctx.brief is None
    assert ctx.results is None
    assert ctx.generation_mode is None


def test_forget_project_only_when_selected():
    ctx = WorkflowContext(selected_project_id="p1")
    ctx.forget_project("p2")
    assert ctx.selected_project_id == "p1"
    ctx.forget_project("p1")
    assert ctx.selected_project_id is None


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_store_drops_contexts_idle_past_ttl():
    clock = FakeClock()
    store = WorkflowStore(ttl_seconds=60, clock=clock)
    store.get("old").selected_project_id = "p1"

    clock.now = 30
    store.get("fresh")
    clock.now = 70
    store.get("fresh")

    assert len(store) == 1
    assert store.get("old").selected_project_id is None


def test_store_keeps_most_recently_used_within_bound():
    store = WorkflowStore(max_entries=2)
    store.get("a").selected_project_id = "pa"
    store.get("b")
    store.get("a")
    store.get("c")

    assert len(store) == 2
    assert store.get("a").selected_project_id == "pa"
    assert store.get("b").selected_project_id is None
