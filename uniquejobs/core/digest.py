"""
Digest computation - the key handed to the uniqueness store

Builds ``{"class", "queue", "unique_args"}`` for a submission, serializes it
canonically, hashes it and prefixes the namespace. Each of the three engine
fields on the submission is computed only while it is unset.
"""

import logging
from typing import Any, Dict, Optional, Union

from ..settings import UniqueJobsSettings
from ..utils.hashing import canonical_json, md5_hexdigest
from .descriptors import HandlerDescriptor
from .filters import FilterResult, filter_unique_args
from .normalizer import normalize
from .policy import EffectivePolicy, resolve_policy
from .registry import HandlerRegistry
from .submission import (
    CLASS_KEY,
    ENGINE_FIELDS,
    QUEUE_KEY,
    UNIQUE_ARGS_KEY,
    JobSubmission,
    is_unset,
)

logger = logging.getLogger(__name__)


class DigestComputer:
    """
    Derives uniqueness digests for job submissions.

    Settings and registry are passed in explicitly; the computer holds no
    per-submission state and may be shared between threads.

    Examples:
        computer = DigestComputer(settings, registry)
        submission = JobSubmission(handler_class="ReportJob", queue="low", args=[7])
        computer.prepare(submission)
        submission.unique_digest  # 'uniquejobs:<32 hex chars>'
    """

    def __init__(self, settings: UniqueJobsSettings, registry: HandlerRegistry):
        self.settings = settings
        self.registry = registry

    def resolve(self, submission: JobSubmission) -> HandlerDescriptor:
        return self.registry.lookup(submission.handler_class)

    def policy_for(self, descriptor: HandlerDescriptor) -> EffectivePolicy:
        return resolve_policy(descriptor, self.settings)

    def filter_args(
        self, submission: JobSubmission, descriptor: Optional[HandlerDescriptor] = None
    ) -> FilterResult:
        """Run the argument filter for a submission's raw args."""
        descriptor = descriptor or self.resolve(submission)
        return filter_unique_args(
            submission.args, descriptor, self.policy_for(descriptor)
        )

    def digestable_hash(
        self, submission: JobSubmission, policy: EffectivePolicy
    ) -> Dict[str, Any]:
        """
        The structure that gets hashed.

        Keys are inserted as class, queue, unique_args; the queue is dropped
        when the policy makes uniqueness span all queues.
        """
        structure = {
            CLASS_KEY: submission.handler_class,
            QUEUE_KEY: submission.queue,
            UNIQUE_ARGS_KEY: submission.unique_args,
        }

        if policy.filter_on_all_queues:
            logger.debug(
                f"uniqueness specified across all queues "
                f"(deleting queue: {submission.queue} from hash)",
                extra={
                    "event": "digest.all_queues",
                    "handler_class": submission.handler_class,
                    "queue": submission.queue,
                },
            )
            del structure[QUEUE_KEY]

        return structure

    def compute_digest(self, submission: JobSubmission, policy: EffectivePolicy) -> str:
        """
        Hash the digestable structure under the resolved prefix.

        The prefix comes from the policy, not from a pre-seeded
        ``unique_prefix`` on the submission.
        """
        structure = self.digestable_hash(submission, policy)
        encoded = canonical_json(normalize(structure))
        digest = f"{policy.prefix}:{md5_hexdigest(encoded)}"
        logger.debug(
            f"unique_digest : {structure} into {digest}",
            extra={
                "event": "digest.computed",
                "handler_class": submission.handler_class,
                "structure": structure,
                "unique_digest": digest,
            },
        )
        return digest

    def prepare(self, submission: JobSubmission) -> JobSubmission:
        """
        Populate unset unique_prefix, unique_args and unique_digest in place.

        Fields that are already set are kept verbatim, so calling this twice
        is a no-op the second time.

        Returns:
            The same submission
        """
        if not any(is_unset(getattr(submission, key)) for key in ENGINE_FIELDS):
            return submission

        descriptor = self.resolve(submission)
        policy = self.policy_for(descriptor)

        if is_unset(submission.unique_prefix):
            submission.unique_prefix = policy.prefix

        if is_unset(submission.unique_args):
            result = filter_unique_args(submission.args, descriptor, policy)
            submission.unique_args = result.args

        if is_unset(submission.unique_digest):
            submission.unique_digest = self.compute_digest(submission, policy)

        return submission

    def unique_digest(self, submission: Union[JobSubmission, Dict[str, Any]]) -> str:
        """
        Return the digest for a submission or wire payload.

        A JobSubmission is populated in place; a payload dict gets the three
        engine keys written back into it.
        """
        if isinstance(submission, JobSubmission):
            return self.prepare(submission).unique_digest
        return self.digest_payload(submission)

    def digest_payload(self, payload: Dict[str, Any]) -> str:
        """
        Populate a wire payload dict in place and return its digest.

        A payload without a queue gets the queue that was hashed.
        """
        submission = self.prepare(JobSubmission.from_payload(payload))
        payload.setdefault(QUEUE_KEY, submission.queue)
        for key in ENGINE_FIELDS:
            payload[key] = getattr(submission, key)
        return submission.unique_digest
