import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from embeddable_actions.core.exceptions import UnknownTriggerError
from embeddable_actions.domain.actions import Action
from embeddable_actions.reactor.engine import TriggerDispatcher
from embeddable_actions.reactor.resolution import ActionResolver

from sample_actions import FilterAction, NavigateAction


@pytest.mark.asyncio
async def test_fire_executes_bound_actions_in_order(store, dispatcher, panel1_context):
    docs = await store.save(NavigateAction(action_type='navigate', title='Docs', url='https://example.org/docs',
                                           embeddable_id='panel1', embeddable_type='map'))
    flt = await store.save(FilterAction(action_type='filter', title='Filter', embeddable_id='dash1', embeddable_type='dashboard'))
    await store.add_mapping('click', docs.id)
    await store.add_mapping('click', flt.id)

    report = await dispatcher.fire('click', panel1_context)

    assert report.ok
    assert report.executed == [docs.id, flt.id]
    assert report.results[docs.id] == 'navigate:https://example.org/docs'
    assert report.results[flt.id] == {'filtered': 'panel1'}
    logging.info('✓ Dispatcher ran subject then container actions.')


@pytest.mark.asyncio
async def test_fire_with_no_bindings_is_a_no_op(dispatcher, panel1_context):
    report = await dispatcher.fire('hover', panel1_context)
    assert report.executed == []
    assert report.ok


@pytest.mark.asyncio
async def test_failing_action_does_not_stop_the_rest(memory_store, trigger_registry, panel1_context, caplog):
    class ExplodingAction(NavigateAction):
        async def execute(self, context):
            raise RuntimeError('target window closed')

    bad = await memory_store.save(ExplodingAction(action_type='navigate', title='Bad', embeddable_id='panel1', embeddable_type='map'))
    good = await memory_store.save(NavigateAction(action_type='navigate', title='Good', url='u', embeddable_id='panel1', embeddable_type='map'))
    await memory_store.add_mapping('click', bad.id)
    await memory_store.add_mapping('click', good.id)

    dispatcher = TriggerDispatcher(ActionResolver(trigger_registry, memory_store))
    with caplog.at_level(logging.ERROR):
        report = await dispatcher.fire('click', panel1_context)

    assert not report.ok
    assert report.executed == [good.id]
    assert isinstance(report.failed[bad.id], RuntimeError)
    assert 'target window closed' in caplog.text


@pytest.mark.asyncio
async def test_plain_action_without_execute_is_reported_failed(memory_store, trigger_registry, panel1_context):
    plain = await memory_store.save(Action(action_type='exclusive', title='Exclusive', embeddable_id='panel1', embeddable_type='map'))
    docs = await memory_store.save(NavigateAction(action_type='navigate', title='Docs', url='u', embeddable_id='panel1', embeddable_type='map'))
    await memory_store.add_mapping('click', plain.id)
    await memory_store.add_mapping('click', docs.id)

    dispatcher = TriggerDispatcher(ActionResolver(trigger_registry, memory_store))
    report = await dispatcher.fire('click', panel1_context)

    assert report.executed == [docs.id]
    assert isinstance(report.failed[plain.id], NotImplementedError)


@pytest.mark.asyncio
async def test_fire_passes_context_to_each_action(panel1_context):
    first = MagicMock(id='act_1', action_type='navigate')
    first.execute = AsyncMock(return_value='ok')
    second = MagicMock(id='act_2', action_type='navigate')
    second.execute = AsyncMock(return_value=None)

    resolver = MagicMock()
    resolver.get_actions_for_trigger = AsyncMock(return_value=[first, second])

    report = await TriggerDispatcher(resolver).fire('click', panel1_context)

    resolver.get_actions_for_trigger.assert_awaited_once_with('click', panel1_context)
    first.execute.assert_awaited_once_with(panel1_context)
    second.execute.assert_awaited_once_with(panel1_context)
    assert report.results == {'act_1': 'ok', 'act_2': None}


@pytest.mark.asyncio
async def test_fire_unknown_trigger_raises(dispatcher, panel1_context):
    with pytest.raises(UnknownTriggerError):
        await dispatcher.fire('drag', panel1_context)
