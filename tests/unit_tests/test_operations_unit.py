import unittest
import sys
import os
import time
from unittest.mock import MagicMock

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from pydantic import BaseModel

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../../")))

from bindery.core.config import LlmDataBindingProperties, LlmOperationsPromptsProperties
from bindery.core.errors import BindingError, LlmProtocolFailure, NoSuitableModelException, ToolNotFoundError, TransportError
from bindery.core.events import ChatModelCallEvent, LlmResponseEvent
from bindery.core.models import Llm, LlmInteraction, LlmOptions
from bindery.core.process import AgentProcess
from bindery.core.prompts import PromptContribution
from bindery.core.selection import AutoModelSelectionCriteria, ByNameModelSelectionCriteria, ModelProvider
from bindery.core.templates import PromptTemplateRenderer
from bindery.operations.chat_model import ChatModelLlmOperations


class Point(BaseModel):
    x: int


def scripted_model(*responses):
    """A transport that answers with the given texts (or exceptions) in order."""
    model = MagicMock()
    model.invoke.side_effect = [r if isinstance(r, (AIMessage, Exception)) else AIMessage(content=r) for r in responses]
    return model


class OperationsTestCase(unittest.TestCase):
    max_attempts = 3

    def build(self, model, **kwargs):
        self.sleeps = []
        self.model = model
        self.llm = Llm(name="test-llm", model=model, prompt_contributors=[PromptContribution("MODEL RULE")])
        self.provider = ModelProvider([self.llm])
        kwargs.setdefault("data_binding", LlmDataBindingProperties(max_attempts=self.max_attempts, fixed_backoff_millis=30))
        kwargs.setdefault("sleep", self.sleeps.append)
        self.ops = ChatModelLlmOperations(self.provider, PromptTemplateRenderer(), **kwargs)
        self.events = []
        self.process = AgentProcess("tester", listeners=[self.events.append])
        return self.ops


class TestCreateObject(OperationsTestCase):
    def test_well_formed_output_binds_first_time(self):
        self.build(scripted_model('{"x": 1}'))
        result = self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        self.assertEqual(result, Point(x=1))
        self.assertEqual(self.model.invoke.call_count, 1)
        self.assertEqual(self.sleeps, [])
        self.assertEqual(len(self.process.llm_invocations), 1)

    def test_malformed_until_exhausted(self):
        self.build(scripted_model("nope", "still nope", "never"))
        with self.assertRaises(BindingError):
            self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        self.assertEqual(self.model.invoke.call_count, 3)
        self.assertEqual(self.sleeps, [0.03, 0.03])
        # Usage is recorded for every raw response, bound or not
        self.assertEqual(len(self.process.llm_invocations), 3)

    def test_recovers_after_bad_attempt(self):
        self.build(scripted_model("<think>hmm</think> broken {", '{"x": 2}'))
        result = self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        self.assertEqual(result, Point(x=2))
        self.assertEqual(self.model.invoke.call_count, 2)

    def test_transport_error_not_retried(self):
        self.build(scripted_model(ConnectionError("socket closed")))
        with self.assertRaises(TransportError):
            self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        self.assertEqual(self.model.invoke.call_count, 1)
        self.assertEqual(self.process.llm_invocations, [])

    def test_selection_error_surfaces_before_any_call(self):
        self.build(scripted_model('{"x": 1}'))
        interaction = LlmInteraction(llm=LlmOptions(criteria=ByNameModelSelectionCriteria("ghost")))
        with self.assertRaises(NoSuitableModelException):
            self.ops.create_object("make a point", interaction, Point, self.process)
        self.model.invoke.assert_not_called()

    def test_auto_criteria_uses_resolver(self):
        resolver = MagicMock()
        resolver.resolve_auto_llm.return_value = ByNameModelSelectionCriteria("test-llm")
        self.build(scripted_model('{"x": 1}'), auto_resolver=resolver)
        interaction = LlmInteraction(llm=LlmOptions(criteria=AutoModelSelectionCriteria()))
        self.ops.create_object("make a point", interaction, Point, self.process)
        resolver.resolve_auto_llm.assert_called_once()

    def test_messages_sent(self):
        self.build(scripted_model('{"x": 1}'))
        interaction = LlmInteraction(prompt_contributors=[PromptContribution("INTERACTION RULE")])
        self.ops.create_object("make a point", interaction, Point, self.process)

        messages = self.model.invoke.call_args[0][0]
        self.assertIsInstance(messages[0], SystemMessage)
        self.assertEqual(messages[0].content, "INTERACTION RULE\nMODEL RULE")
        self.assertIsInstance(messages[1], HumanMessage)
        self.assertTrue(messages[1].content.startswith("make a point\n"))
        self.assertIn("JSON Schema", messages[1].content)
        self.assertIn("Example:", messages[1].content)

    def test_examples_can_be_switched_off_per_call(self):
        self.build(scripted_model('{"x": 1}'))
        self.ops.create_object("make a point", LlmInteraction(generate_examples=False), Point, self.process)
        messages = self.model.invoke.call_args[0][0]
        self.assertNotIn("Example:", messages[-1].content)

    def test_events_published(self):
        self.build(scripted_model("bad", '{"x": 1}'))
        self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        call_events = [e for e in self.events if isinstance(e, ChatModelCallEvent)]
        response_events = [e for e in self.events if isinstance(e, LlmResponseEvent)]
        self.assertEqual([e.attempt for e in call_events], [1, 2])
        self.assertEqual(call_events[0].agent_name, "tester")
        self.assertEqual(len(response_events), 1)
        self.assertEqual(response_events[0].response, Point(x=1))
        self.assertIs(self.events[-1], response_events[0])

    def test_invocation_records_span_whole_call(self):
        self.build(
            scripted_model("bad", "bad", '{"x": 1}'),
            data_binding=LlmDataBindingProperties(max_attempts=3, fixed_backoff_millis=20),
            sleep=time.sleep,
        )
        self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        invocations = self.process.llm_invocations
        self.assertEqual(len(invocations), 3)
        # Every record is stamped with the call start, not the attempt start
        self.assertEqual(len({i.timestamp for i in invocations}), 1)
        self.assertTrue(all(i.running_time.total_seconds() >= 0 for i in invocations))
        self.assertGreaterEqual(invocations[-1].running_time.total_seconds(), 0.04)
        self.assertEqual(invocations[0].agent_name, "tester")
        self.assertEqual(invocations[0].llm, "test-llm")

    def test_usage_from_response(self):
        response = AIMessage(content='{"x": 1}', usage_metadata={"input_tokens": 12, "output_tokens": 4, "total_tokens": 16})
        self.build(scripted_model(response))
        self.ops.create_object("make a point", LlmInteraction(), Point, self.process)
        usage = self.process.llm_invocations[0].usage
        self.assertEqual((usage.prompt_tokens, usage.completion_tokens, usage.total_tokens), (12, 4, 16))
        self.assertFalse(usage.estimated)


class TestGenerate(OperationsTestCase):
    def test_plain_text_is_returned_raw(self):
        self.build(scripted_model("<think>x</think>Just text."))
        text = self.ops.generate("say something", LlmInteraction(), self.process)
        self.assertEqual(text, "<think>x</think>Just text.")
        messages = self.model.invoke.call_args[0][0]
        self.assertEqual(messages[-1].content, "say something")
        self.assertEqual(len(self.process.llm_invocations), 1)

    def test_with_real_langchain_fake_model(self):
        model = FakeListChatModel(responses=['```json\n{"x": 11}\n```'])
        self.build(model)
        self.assertEqual(self.ops.create_object("point", LlmInteraction(), Point, self.process), Point(x=11))


class TestCreateObjectIfPossible(OperationsTestCase):
    def test_success_envelope(self):
        self.build(scripted_model('{"success": {"x": 1}, "failure": null}'))
        result = self.ops.create_object_if_possible("make a point", LlmInteraction(), Point, self.process)
        self.assertTrue(result.is_success)
        self.assertEqual(result.value, Point(x=1))

    def test_failure_envelope_is_not_retried(self):
        self.build(scripted_model('{"success": null, "failure": "insufficient info"}', '{"success": {"x": 1}}'))
        result = self.ops.create_object_if_possible("make a point", LlmInteraction(), Point, self.process)
        self.assertTrue(result.is_failure)
        self.assertIsInstance(result.error, LlmProtocolFailure)
        self.assertEqual(str(result.error), "insufficient info")
        self.assertEqual(self.model.invoke.call_count, 1)
        self.assertEqual(self.sleeps, [])

    def test_malformed_envelope_is_retried_then_fatal(self):
        self.build(scripted_model("x", "y", "z"))
        with self.assertRaises(BindingError):
            self.ops.create_object_if_possible("make a point", LlmInteraction(), Point, self.process)
        self.assertEqual(self.model.invoke.call_count, 3)

    def test_answer_found_past_echoed_input(self):
        self.build(scripted_model('Input echo: {"topic": "points"}. Answer: {"success": {"x": 1}}'))
        result = self.ops.create_object_if_possible("make a point", LlmInteraction(), Point, self.process)
        self.assertEqual(result.value, Point(x=1))
        self.assertEqual(self.model.invoke.call_count, 1)

    def test_unwrapped_target_is_retried(self):
        self.build(scripted_model('{"x": 1}', '{"success": {"x": 1}}'))
        result = self.ops.create_object_if_possible("make a point", LlmInteraction(), Point, self.process)
        self.assertTrue(result.is_success)
        self.assertEqual(result.value, Point(x=1))
        self.assertEqual(self.model.invoke.call_count, 2)
        self.assertEqual(self.sleeps, [0.03])

    def test_maybe_prompt_wraps_instruction(self):
        self.build(scripted_model('{"success": {"x": 1}}'))
        self.ops.create_object_if_possible("make a point", LlmInteraction(), Point, self.process)
        user = self.model.invoke.call_args[0][0][-1]
        self.assertTrue(user.content.startswith("Instruction: <make a point>\n\n"))
        self.assertIn("Example of failure", user.content)

    def test_custom_maybe_template(self):
        self.build(
            scripted_model('{"failure": "no"}'),
            prompts=LlmOperationsPromptsProperties(maybe_prompt_template="terse"),
        )
        self.ops.template_renderer = PromptTemplateRenderer({"terse": "SAY success OR failure"})
        self.ops.create_object_if_possible("q", LlmInteraction(), Point, self.process)
        user = self.model.invoke.call_args[0][0][-1]
        self.assertIn("Instruction: <q>\n\nSAY success OR failure", user.content)


class TestShouldGenerateExamples(OperationsTestCase):
    def test_matrix(self):
        cases = [
            (True, None, True),
            (True, True, True),
            (True, False, False),
            (False, None, False),
            (False, True, True),
            (False, False, False),
        ]
        for default, per_call, expected in cases:
            with self.subTest(default=default, per_call=per_call):
                self.build(scripted_model(), prompts=LlmOperationsPromptsProperties(generate_examples_by_default=default))
                self.assertEqual(self.ops.should_generate_examples(LlmInteraction(generate_examples=per_call)), expected)


class TestToolsAndTemperature(OperationsTestCase):
    def test_tool_calls_are_executed(self):
        def add(a: int, b: int) -> int:
            """Adds two numbers."""
            return a + b

        model = scripted_model(
            AIMessage(content="", tool_calls=[{"name": "add", "args": {"a": 1, "b": 2}, "id": "call_1"}]),
            '{"x": 3}',
        )
        model.bind_tools.return_value = model
        self.build(model)

        result = self.ops.create_object("add then point", LlmInteraction(tools=[add]), Point, self.process)
        self.assertEqual(result, Point(x=3))
        model.bind_tools.assert_called_once()
        second_call = model.invoke.call_args_list[1][0][0]
        self.assertIsInstance(second_call[-1], ToolMessage)
        self.assertEqual(second_call[-1].content, "3")
        self.assertEqual(len(self.process.llm_invocations), 2)

    def test_unknown_tool_is_not_retried(self):
        model = scripted_model(
            AIMessage(content="", tool_calls=[{"name": "ghost", "args": {}, "id": "call_1"}]),
            '{"x": 3}',
        )
        model.bind_tools.return_value = model
        self.build(model)

        with self.assertRaises(ToolNotFoundError):
            self.ops.create_object("point", LlmInteraction(tools=[len]), Point, self.process)
        self.assertEqual(model.invoke.call_count, 1)

    def test_temperature_applied_to_models_that_expose_it(self):
        class TunableModel:
            model_fields = {"temperature": None}

            def __init__(self, temperature=None):
                self.temperature = temperature
                self.seen_temperatures = []

            def model_copy(self, update):
                copy = TunableModel(update["temperature"])
                copy.seen_temperatures = self.seen_temperatures
                return copy

            def invoke(self, messages):
                self.seen_temperatures.append(self.temperature)
                return AIMessage(content='{"x": 1}')

        model = TunableModel(temperature=0.7)
        self.build(model)
        self.ops.create_object("p", LlmInteraction(llm=LlmOptions(temperature=0.0)), Point, self.process)
        self.assertEqual(model.seen_temperatures, [0.0])
        self.assertEqual(model.temperature, 0.7)


if __name__ == "__main__":
    unittest.main()
