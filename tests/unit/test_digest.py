"""
Tests for digest computation: determinism, idempotence, queue handling and
the fail-open fallbacks seen from the submission's point of view.
"""

import hashlib
import json
import os
import re
import subprocess
import sys
from pathlib import Path

import pytest

from uniquejobs.core.digest import DigestComputer
from uniquejobs.core.registry import HandlerRegistry
from uniquejobs.core.submission import JobSubmission
from uniquejobs.settings import UniqueJobsSettings


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def md5_of(structure):
    encoded = json.dumps(structure, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(encoded.encode("utf-8")).hexdigest()


def submit(handler_class, queue="default", args=None, **fields):
    return JobSubmission(handler_class=handler_class, queue=queue, args=args or [], **fields)


class TestDigestFormat:
    def test_end_to_end_example(self, computer):
        submission = submit("ReportJob", queue="low", args=[{"id": 7}])

        digest = computer.unique_digest(submission)

        expected = md5_of({"class": "ReportJob", "queue": "low", "unique_args": [{"id": 7}]})
        assert digest == f"uniquejobs:{expected}"
        assert submission.unique_digest == digest
        assert submission.unique_prefix == "uniquejobs"
        assert submission.unique_args == [{"id": 7}]

    def test_digest_shape(self, computer):
        digest = computer.unique_digest(submit("Mailer", args=[1]))

        assert re.fullmatch(r"uniquejobs:[0-9a-f]{32}", digest)

    def test_prefix_override(self, computer, registry):
        @registry.handler(unique_prefix="custom")
        class ReportJob:
            pass

        digest = computer.unique_digest(submit("ReportJob", args=[1]))

        assert digest.startswith("custom:")

    def test_structure_key_order(self, computer):
        structure = computer.digestable_hash(
            submit("Mailer", queue="mail", unique_args=[1]),
            computer.policy_for(computer.registry.lookup("Mailer")),
        )

        assert list(structure) == ["class", "queue", "unique_args"]


class TestDeterminism:
    def test_repeated_invocations(self, computer):
        digests = {
            computer.unique_digest(submit("Mailer", args=[{"b": 2, "a": 1}, [3]]))
            for _ in range(5)
        }

        assert len(digests) == 1

    def test_mapping_key_order_does_not_matter(self, computer):
        first = computer.unique_digest(submit("Mailer", args=[{"b": 2, "a": 1}]))
        second = computer.unique_digest(submit("Mailer", args=[{"a": 1, "b": 2}]))

        assert first == second

    def test_different_args_differ(self, computer):
        first = computer.unique_digest(submit("Mailer", args=[1]))
        second = computer.unique_digest(submit("Mailer", args=[2]))

        assert first != second

    def test_stable_across_processes(self, computer):
        args = [{"tags": {"b", "a", "c"}}, "x"]
        script = (
            "from uniquejobs.core.digest import DigestComputer\n"
            "from uniquejobs.core.registry import HandlerRegistry\n"
            "from uniquejobs.core.submission import JobSubmission\n"
            "from uniquejobs.settings import UniqueJobsSettings\n"
            "computer = DigestComputer(UniqueJobsSettings(), HandlerRegistry())\n"
            "submission = JobSubmission(handler_class='Mailer', queue='default',\n"
            "                           args=[{'tags': {'b', 'a', 'c'}}, 'x'])\n"
            "print(computer.unique_digest(submission))\n"
        )

        outputs = {
            subprocess.run(
                [sys.executable, "-c", script],
                capture_output=True,
                text=True,
                check=True,
                env={**os.environ, "PYTHONHASHSEED": str(seed)},
                cwd=PROJECT_ROOT,
            ).stdout.strip()
            for seed in (1, 2)
        }

        assert outputs == {computer.unique_digest(submit("Mailer", args=args))}


class TestIdempotence:
    def test_second_call_changes_nothing(self, computer):
        submission = submit("Mailer", args=[1, "x"])
        computer.prepare(submission)
        before = submission.model_dump()

        computer.prepare(submission)

        assert submission.model_dump() == before

    def test_preseeded_fields_are_kept(self, computer):
        submission = submit("Mailer", args=[1], unique_digest="seeded:abc")

        assert computer.unique_digest(submission) == "seeded:abc"
        assert submission.unique_prefix == "uniquejobs"
        assert submission.unique_args == [1]

    def test_preseeded_args_feed_the_digest(self, computer):
        seeded = submit("Mailer", args=[1, 2], unique_args=[1])
        plain = submit("Mailer", args=[1])

        assert computer.unique_digest(seeded) == computer.unique_digest(plain)

    def test_preseeded_prefix_does_not_change_digest(self, computer):
        seeded = submit("Mailer", args=[1], unique_prefix="manual")
        plain = submit("Mailer", args=[1])

        digest = computer.unique_digest(seeded)

        assert digest.startswith("uniquejobs:")
        assert digest == computer.unique_digest(plain)
        assert seeded.unique_prefix == "manual"

    def test_empty_string_counts_as_unset(self, computer):
        submission = submit("Mailer", args=[1], unique_prefix="", unique_digest="")

        digest = computer.unique_digest(submission)

        assert submission.unique_prefix == "uniquejobs"
        assert digest.startswith("uniquejobs:")


class TestQueues:
    @pytest.fixture
    def all_queues_handler(self, registry):
        @registry.handler(unique_on_all_queues=True, unique_args_enabled=True)
        class SyncJob:
            pass

        return SyncJob

    def test_all_queues_ignores_queue(self, computer, all_queues_handler):
        first = computer.unique_digest(submit("SyncJob", queue="low", args=[1]))
        second = computer.unique_digest(submit("SyncJob", queue="high", args=[1]))

        assert first == second

    def test_queue_counts_by_default(self, computer):
        first = computer.unique_digest(submit("Mailer", queue="low", args=[1]))
        second = computer.unique_digest(submit("Mailer", queue="high", args=[1]))

        assert first != second

    def test_all_queues_needs_args_enabled(self, computer, registry):
        @registry.handler(unique_on_all_queues=True)
        class LooseJob:
            pass

        first = computer.unique_digest(submit("LooseJob", queue="low", args=[1]))
        second = computer.unique_digest(submit("LooseJob", queue="high", args=[1]))

        assert first != second

    def test_all_queues_structure_has_no_queue(self, computer, all_queues_handler):
        submission = computer.prepare(submit("SyncJob", queue="low", args=[1]))

        expected = md5_of({"class": "SyncJob", "unique_args": [1]})
        assert submission.unique_digest == f"uniquejobs:{expected}"


class TestFilteringThroughDigest:
    def test_disabled_args_passthrough(self, computer):
        submission = submit("Mailer", args=[1, "x"])

        computer.prepare(submission)

        assert submission.unique_args == [1, "x"]

    def test_method_filter_drops_arguments(self, computer, registry):
        @registry.handler(unique_args="by_user")
        class ReportJob:
            @classmethod
            def by_user(cls, args):
                return args[:1]

        first = computer.unique_digest(submit("ReportJob", args=[5, "pdf"]))
        second = computer.unique_digest(submit("ReportJob", args=[5, "csv"]))

        assert first == second

    def test_missing_method_uses_normalized_args(self, computer, registry):
        @registry.handler(unique_args="nope")
        class ReportJob:
            pass

        submission = computer.prepare(submit("ReportJob", args=[(1, 2)]))

        assert submission.unique_args == [[1, 2]]

    def test_unresolvable_class_keeps_raw_args(self):
        settings = UniqueJobsSettings(args_enabled_by_default=True)
        computer = DigestComputer(settings, HandlerRegistry())
        args = [(1, 2)]
        submission = submit("no_such_module.Missing", args=args)

        digest = computer.unique_digest(submission)

        assert submission.unique_args == [(1, 2)]
        assert digest.startswith("uniquejobs:")

    @pytest.mark.parametrize("enabled", [False, True])
    def test_non_utf8_bytes_are_digested(self, registry, enabled):
        settings = UniqueJobsSettings(args_enabled_by_default=enabled)
        computer = DigestComputer(settings, registry)

        first = computer.unique_digest(submit("Mailer", args=[b"\xff\xfe"]))
        second = computer.unique_digest(submit("Mailer", args=[b"\xff\xfe"]))

        assert first == second
        assert first != computer.unique_digest(submit("Mailer", args=[b"\xff\xfd"]))

    def test_callback_error_reaches_caller(self, computer, registry):
        def explode(args):
            raise ValueError("filter failed")

        registry.register_handler(type("Exploding", (), {}), unique_args=explode)

        with pytest.raises(ValueError, match="filter failed"):
            computer.unique_digest(submit("Exploding", args=[1]))


class TestPayloads:
    def test_digest_payload_fills_dict(self, computer):
        payload = {"class": "ReportJob", "queue": "low", "args": [{"id": 7}]}

        digest = computer.digest_payload(payload)

        assert payload["unique_digest"] == digest
        assert payload["unique_prefix"] == "uniquejobs"
        assert payload["unique_args"] == [{"id": 7}]

    def test_unique_digest_accepts_payload(self, computer):
        payload = {"class": "ReportJob", "queue": "low", "args": [1]}
        submission = submit("ReportJob", queue="low", args=[1])

        assert computer.unique_digest(payload) == computer.unique_digest(submission)

    def test_payload_preseeded_digest_kept(self, computer):
        payload = {"class": "ReportJob", "args": [1], "unique_digest": "kept:1"}

        assert computer.digest_payload(payload) == "kept:1"

    def test_missing_queue_written_back(self, computer):
        payload = {"class": "ReportJob", "args": [1]}

        digest = computer.digest_payload(payload)

        assert payload["queue"] == "default"
        assert digest == computer.unique_digest(submit("ReportJob", queue="default", args=[1]))

    def test_existing_queue_untouched(self, computer):
        payload = {"class": "ReportJob", "queue": "low", "args": [1]}

        computer.digest_payload(payload)

        assert payload["queue"] == "low"
