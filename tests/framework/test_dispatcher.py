"""Tests for TriggerDispatcher, including cascades through a shared context."""

import pytest

from trigger_spine.core.errors import LoopLimitExceededError
from trigger_spine.core.phases import LifecyclePhase
from trigger_spine.framework.batch import TriggerBatch
from trigger_spine.framework.context import ExecutionContext
from trigger_spine.framework.dispatcher import TriggerDispatcher
from trigger_spine.framework.handler import DispatchStatus, TriggerHandler
from trigger_spine.framework.registry import register_handler


class Journal:
    """Collects (handler, phase) entries across handler instances."""

    entries: list = []


@pytest.fixture(autouse=True)
def reset_journal():
    Journal.entries = []
    yield
    Journal.entries = []


class JournalingHandler(TriggerHandler):
    def after_update(self):
        Journal.entries.append((self.handler_name, self.phase))

    def after_insert(self):
        Journal.entries.append((self.handler_name, self.phase))


class FirstHandler(JournalingHandler):
    pass


class SecondHandler(JournalingHandler):
    pass


class BrokenHandler(TriggerHandler):
    def after_update(self):
        raise ValueError("downstream API rejected payload")


class TestDispatch:
    def test_runs_registered_handlers_in_order(self, context, make_batch):
        register_handler("Account", order=20)(SecondHandler)
        register_handler("Account", order=10)(FirstHandler)

        results = TriggerDispatcher(context).dispatch(make_batch())

        assert [r.handler for r in results] == ["FirstHandler", "SecondHandler"]
        assert all(r.ok for r in results)
        assert [e[0] for e in Journal.entries] == ["FirstHandler", "SecondHandler"]

    def test_explicit_handlers(self, context, make_batch):
        results = TriggerDispatcher(context).dispatch(make_batch(), handlers=[SecondHandler])
        assert [r.handler for r in results] == ["SecondHandler"]

    def test_no_handlers(self, context, make_batch):
        assert TriggerDispatcher(context).dispatch(make_batch("Lead")) == []

    def test_suppressed_handlers_do_not_stop_dispatch(self, context, make_batch):
        context.bypasses.bypass(FirstHandler)

        results = TriggerDispatcher(context).dispatch(make_batch(), handlers=[FirstHandler, SecondHandler])

        assert [r.status for r in results] == [DispatchStatus.SUPPRESSED, DispatchStatus.COMPLETED]

    def test_stops_after_failure(self, context, error_sink, make_batch):
        batch = make_batch()

        results = TriggerDispatcher(context).dispatch(batch, handlers=[FirstHandler, BrokenHandler, SecondHandler])

        assert [r.status for r in results] == [DispatchStatus.COMPLETED, DispatchStatus.FAILED]
        assert len(error_sink) == 1
        assert all(r.has_errors for r in batch.new)
        assert [e[0] for e in Journal.entries] == ["FirstHandler"]

    def test_default_context(self, make_batch):
        dispatcher = TriggerDispatcher()
        assert isinstance(dispatcher.context, ExecutionContext)


class TestCascades:
    def test_handler_dispatcher_shares_context(self, context, make_batch):
        class AccountHandler(TriggerHandler):
            def after_update(self):
                assert self.dispatcher().context is self.context

        assert AccountHandler(make_batch(), context).run().ok

    def test_bypass_during_cascade(self, context, make_batch):
        @register_handler("Contact")
        class ContactHandler(JournalingHandler):
            pass

        class AccountHandler(TriggerHandler):
            def after_update(self):
                contacts = TriggerBatch("Contact", LifecyclePhase.AFTER_UPDATE, new=[{"id": "003A"}])
                self.bypass(ContactHandler)
                self.dispatcher().dispatch(contacts)
                self.clear_bypass(ContactHandler)
                self.dispatcher().dispatch(contacts)

        assert AccountHandler(make_batch(), context).run().ok
        assert Journal.entries == [("ContactHandler", LifecyclePhase.AFTER_UPDATE)]

    def test_loop_abort_propagates_through_cascade(self, context, error_sink, make_batch):
        @register_handler("Opportunity")
        class OpportunityHandler(TriggerHandler):
            max_loop_count = 1

            def after_update(self):
                Journal.entries.append(("OpportunityHandler", self.phase))
                if len(Journal.entries) == 1:
                    # Update re-fires after_update on a fresh instance.
                    self.dispatcher().dispatch(self.batch)
                else:
                    # Fresh instance re-enters itself.
                    self.run().raise_for_status()

        with pytest.raises(LoopLimitExceededError, match="Maximum loop count of 1 reached in OpportunityHandler"):
            TriggerDispatcher(context).dispatch(make_batch("Opportunity"))

        assert len(Journal.entries) == 2
        assert len(error_sink) == 0

    def test_independent_contexts(self, make_batch):
        first = ExecutionContext.create()
        second = ExecutionContext.create()
        first.bypasses.bypass(FirstHandler)

        suppressed = TriggerDispatcher(first).dispatch(make_batch(), handlers=[FirstHandler])
        ran = TriggerDispatcher(second).dispatch(make_batch(), handlers=[FirstHandler])

        assert suppressed[0].suppressed
        assert ran[0].ok
