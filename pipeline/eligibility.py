"""
Visa eligibility evaluation.

The rules run in a fixed order, each folding its findings into an immutable
accumulator of ineligibility and review reasons. The final status is then
derived from the accumulator by an explicit precedence:
ineligible > review > eligible.
"""

import logging
from datetime import date
from functools import reduce
from typing import Callable, NamedTuple, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from .models import (
    Applicant, EligibilityResult, EligibilityStatus, MrzDocument, Policy,
    ValidationResult, ValidationStatus,
)

logger = logging.getLogger(__name__)

# Highest first
STATUS_PRECEDENCE = (
    EligibilityStatus.INELIGIBLE,
    EligibilityStatus.REVIEW,
    EligibilityStatus.ELIGIBLE,
)


class EligibilityContext(NamedTuple):
    policy: Policy
    applicant: Applicant
    documents: Tuple[Optional[MrzDocument], ...]
    validations: Tuple[ValidationResult, ...]
    today: date


class EligibilityAccumulator(NamedTuple):
    ineligible: Tuple[str, ...] = ()
    review: Tuple[str, ...] = ()

    def deny(self, reason: str) -> "EligibilityAccumulator":
        return self._replace(ineligible=self.ineligible + (reason,))

    def refer(self, reason: str) -> "EligibilityAccumulator":
        return self._replace(review=self.review + (reason,))


Rule = Callable[[EligibilityAccumulator, EligibilityContext], EligibilityAccumulator]


def check_visa_type(acc: EligibilityAccumulator, ctx: EligibilityContext) -> EligibilityAccumulator:
    allowed = {visa.strip().lower() for visa in ctx.policy.allowed_visa_types}
    if allowed and ctx.applicant.visa_type.strip().lower() not in allowed:
        return acc.deny(
            f"Visa type '{ctx.applicant.visa_type}' is not offered under policy {ctx.policy.version}"
        )
    return acc


def check_restricted_nationality(acc: EligibilityAccumulator, ctx: EligibilityContext) -> EligibilityAccumulator:
    nationality = ctx.applicant.nationality.strip().lower()
    if nationality in ctx.policy.restricted_nationalities:
        return acc.deny(
            f"Applicants of nationality {nationality.upper()} are restricted under policy {ctx.policy.version}"
        )
    return acc


def check_minimum_age(acc: EligibilityAccumulator, ctx: EligibilityContext) -> EligibilityAccumulator:
    age = relativedelta(ctx.today, ctx.applicant.date_of_birth).years
    if age < ctx.policy.minimum_applicant_age:
        return acc.deny(
            f"Applicant is {age} years old; minimum age is {ctx.policy.minimum_applicant_age}"
        )
    return acc


def check_passport_validity(acc: EligibilityAccumulator, ctx: EligibilityContext) -> EligibilityAccumulator:
    months = ctx.policy.minimum_passport_validity_months
    required_until = ctx.today + relativedelta(months=months)

    readable = [
        (index, document) for index, document in enumerate(ctx.documents)
        if document is not None and document.expiry_date is not None
    ]
    if not readable:
        return acc.refer("Passport expiry date could not be confirmed from any document")

    for index, document in readable:
        if document.expiry_date < required_until:
            acc = acc.deny(
                f"Document {index + 1} expires on {document.expiry_date.isoformat()}, "
                f"less than the required {months} months of validity"
            )
    return acc


def check_prior_failures(acc: EligibilityAccumulator, ctx: EligibilityContext) -> EligibilityAccumulator:
    failed = [v for v in ctx.validations if v.status == ValidationStatus.FAIL]
    if failed:
        rules = sorted({v.rule for v in failed})
        return acc.refer(
            f"{len(failed)} document validation check(s) failed: {', '.join(rules)}"
        )
    return acc


ELIGIBILITY_RULES: Tuple[Rule, ...] = (
    check_visa_type,
    check_restricted_nationality,
    check_minimum_age,
    check_passport_validity,
    check_prior_failures,
)


def decide_status(acc: EligibilityAccumulator) -> EligibilityStatus:
    signalled = {
        EligibilityStatus.INELIGIBLE: bool(acc.ineligible),
        EligibilityStatus.REVIEW: bool(acc.review),
        EligibilityStatus.ELIGIBLE: True,
    }
    for status in STATUS_PRECEDENCE:
        if signalled[status]:
            return status
    return EligibilityStatus.ELIGIBLE


def evaluate_eligibility(policy: Policy,
                         applicant: Applicant,
                         documents: Sequence[Optional[MrzDocument]],
                         validations: Sequence[ValidationResult] = (),
                         today: Optional[date] = None,
                         rules: Sequence[Rule] = ELIGIBILITY_RULES) -> EligibilityResult:
    """
    Evaluate every eligibility rule and derive the final status.

    Reasons explain the final status: the ineligibility reasons when
    ineligible, the review reasons when sent to review, none when eligible.
    """
    ctx = EligibilityContext(
        policy=policy,
        applicant=applicant,
        documents=tuple(documents),
        validations=tuple(validations),
        today=today or date.today(),
    )
    acc = reduce(lambda current, rule: rule(current, ctx), rules, EligibilityAccumulator())
    status = decide_status(acc)

    if status == EligibilityStatus.INELIGIBLE:
        reasons = acc.ineligible
    elif status == EligibilityStatus.REVIEW:
        reasons = acc.review
    else:
        reasons = ()

    logger.info("Eligibility for %s visa: %s (%d reason(s))",
                applicant.visa_type, status.value, len(reasons))

    return EligibilityResult(status=status, visa_type=applicant.visa_type, reasons=reasons)
