"""Enumerations for the equity planning engine."""

from enum import StrEnum


class GrantType(StrEnum):
    ISO = "ISO"
    NSO = "NSO"
    RSU = "RSU"


class VestingCadence(StrEnum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class VestingEventLabel(StrEnum):
    GRANT_DATE = "GrantDate"
    CLIFF_VESTING = "CliffVesting"
    REGULAR_VESTING = "RegularVesting"
    FINAL_VESTING = "FinalVesting"


class FilingStatus(StrEnum):
    SINGLE = "SINGLE"
    MFJ = "MARRIED_FILING_JOINTLY"
    MFS = "MARRIED_FILING_SEPARATELY"
    HOH = "HEAD_OF_HOUSEHOLD"


class TaxModel(StrEnum):
    BRACKETED = "bracketed"
    FLAT = "flat"


class ExerciseAction(StrEnum):
    EXERCISE = "exercise"
    PARTIAL_EXERCISE = "partial_exercise"
    WAIT = "wait"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FactorImpact(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class RiskTolerance(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CompanyStage(StrEnum):
    EARLY = "early"
    GROWTH = "growth"
    LATE = "late"
    PRE_IPO = "pre-ipo"
    UNKNOWN = "unknown"


class InsightPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EarlyExerciseAdvice(StrEnum):
    EARLY_EXERCISE = "early_exercise"
    WAIT = "wait"
    NOT_APPLICABLE = "not_applicable"


class ExitType(StrEnum):
    IPO = "IPO"
    ACQUISITION = "Acquisition"
    SECONDARY = "Secondary"


class MarketConditions(StrEnum):
    FAVORABLE = "favorable"
    NEUTRAL = "neutral"
    UNFAVORABLE = "unfavorable"
