"""Investment opinions from three fixed investor archetypes.

Offer, ROI and recommendation figures are always computed here. Narrative text
(summary, strengths, concerns) can be delegated to a Narrator; any narrator
failure leaves the hand-written template text in place.
"""
import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol

import anthropic
import structlog

from rentaliq.analysis.area_rating import AreaRating

logger = structlog.get_logger()


class Archetype(str, Enum):
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"
    SUBSIDIZED = "subsidized-housing"


class RecommendationLevel(str, Enum):
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    AVOID = "AVOID"
    STRONG_AVOID = "STRONG_AVOID"


RECOMMENDATION_ORDER = [
    RecommendationLevel.STRONG_BUY,
    RecommendationLevel.BUY,
    RecommendationLevel.HOLD,
    RecommendationLevel.AVOID,
    RecommendationLevel.STRONG_AVOID,
]

RATINGS = {
    RecommendationLevel.STRONG_BUY: 5,
    RecommendationLevel.BUY: 4,
    RecommendationLevel.HOLD: 3,
    RecommendationLevel.AVOID: 2,
    RecommendationLevel.STRONG_AVOID: 1,
}

# Minimum ROI for STRONG_BUY, BUY, HOLD, AVOID; anything lower is STRONG_AVOID
ROI_THRESHOLDS = {
    Archetype.AGGRESSIVE: (0.30, 0.20, 0.10, 0.0),
    Archetype.CONSERVATIVE: (0.08, 0.06, 0.04, 0.02),
    Archetype.SUBSIDIZED: (0.10, 0.08, 0.06, 0.04),
}

# Area grades that cost an archetype one recommendation step
DOWNGRADE_GRADES = {
    Archetype.AGGRESSIVE: ("F",),
    Archetype.CONSERVATIVE: ("D", "F"),
    Archetype.SUBSIDIZED: ("F",),
}

AGGRESSIVE_OFFER_RATIO = 0.70
AGGRESSIVE_REHAB_RATIO = 0.10
CONSERVATIVE_OFFER_RATIO = 0.88
CONSERVATIVE_EXPENSE_RATIO = 0.40
SUBSIDIZED_OFFER_RATIO = 0.85

EXPERTS = {
    Archetype.AGGRESSIVE: {
        "name": "Marcus Reid",
        "expertise": "Value-add investor specializing in BRRRR and fix-and-flip deals",
        "exit_strategy": "BRRRR: buy below market, rehab, refinance at ARV, or flip for profit",
        "confidence": 70,
    },
    Archetype.CONSERVATIVE: {
        "name": "Linda Okafor",
        "expertise": "Buy-and-hold landlord focused on steady cash flow",
        "exit_strategy": "Long-term hold for cash flow and gradual appreciation",
        "confidence": 85,
    },
    Archetype.SUBSIDIZED: {
        "name": "David Alvarez",
        "expertise": "Section 8 and subsidized-housing portfolio manager",
        "exit_strategy": "Long-term hold with government-guaranteed Section 8 rent payments",
        "confidence": 80,
    },
}

NARRATIVE_PROMPT = """You are {expert_name}, {expertise}.

Review this rental property deal from your investment perspective. The figures below are final;
do not recalculate them.

**Deal Figures:**
- Asking price: ${subject_price:,.0f}
- Comparable average price: ${comparable_avg_price:,.0f}
- Comparable average rent: ${comparable_avg_rent:,.0f}/mo
- Area safety grade: {area_grade}
- HUD Fair Market Rent: ${subsidy_fmr:,.0f}/mo
- Recommended offer: ${recommended_offer:,}
- Estimated ROI: {roi:.1%}
- Recommendation: {recommendation}
- Exit strategy: {exit_strategy}

**Respond with JSON only (no markdown):**
{{
    "summary": "<2-3 sentences>",
    "strengths": ["<strength1>", "<strength2>"],
    "concerns": ["<concern1>", "<concern2>"]
}}
"""


@dataclass
class ExpertOpinion:
    archetype: Archetype
    expert_name: str
    expertise: str
    recommended_offer: int
    exit_strategy: str
    roi_estimate: float
    recommendation: RecommendationLevel
    rating: int
    estimated_value: int
    confidence_level: int
    summary: str = ""
    strengths: list[str] = field(default_factory=list)
    concerns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "archetype": self.archetype.value,
            "expertName": self.expert_name,
            "expertise": self.expertise,
            "rating": self.rating,
            "recommendation": self.recommendation.value,
            "recommendedOffer": self.recommended_offer,
            "exitStrategy": self.exit_strategy,
            "roiEstimate": round(self.roi_estimate * 100, 1),
            "estimatedValue": self.estimated_value,
            "confidenceLevel": self.confidence_level,
            "summary": self.summary,
            "strengths": self.strengths,
            "concerns": self.concerns,
        }


@dataclass
class DealContext:
    subject_price: float
    comparable_avg_price: float
    comparable_avg_rent: float
    area_grade: str
    subsidy_fmr: float


class Narrator(Protocol):
    async def narrate(self, prompt: str) -> Optional[dict]:
        """Return the parsed JSON object for the prompt, or None on any failure."""
        ...


class NullNarrator:
    """Narrator used when no text-generation service is configured."""

    async def narrate(self, prompt: str) -> Optional[dict]:
        return None


class AnthropicNarrator:
    """Narrator backed by Claude."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", max_tokens: int = 1000):
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def narrate(self, prompt: str) -> Optional[dict]:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )

            response_text = message.content[0].text
            # Clean up response - remove any markdown code blocks
            response_text = response_text.strip()
            if response_text.startswith("```"):
                response_text = response_text.split("```")[1]
                if response_text.startswith("json"):
                    response_text = response_text[4:]
            response_text = response_text.strip()

            data = json.loads(response_text)

        except json.JSONDecodeError as e:
            logger.error("Failed to parse narrative response", error=str(e))
            return None
        except anthropic.APIError as e:
            logger.error("Claude API error", error=str(e))
            return None
        except (IndexError, AttributeError) as e:
            logger.error("Unexpected narrative response shape", error=str(e))
            return None

        return data if isinstance(data, dict) else None


def parse_narrative(data: Optional[dict]) -> Optional[tuple[str, list[str], list[str]]]:
    """Validate a narrator result. A missing or mistyped field rejects the whole result."""
    if not isinstance(data, dict):
        return None

    summary = data.get("summary")
    strengths = data.get("strengths")
    concerns = data.get("concerns")

    if not isinstance(summary, str) or not summary.strip():
        return None
    for items in (strengths, concerns):
        if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
            return None

    return summary.strip(), list(strengths), list(concerns)


def recommendation_for(archetype: Archetype, roi: float, area_grade: str) -> RecommendationLevel:
    strong_buy, buy, hold, avoid = ROI_THRESHOLDS[archetype]
    if roi >= strong_buy:
        level = RecommendationLevel.STRONG_BUY
    elif roi >= buy:
        level = RecommendationLevel.BUY
    elif roi >= hold:
        level = RecommendationLevel.HOLD
    elif roi >= avoid:
        level = RecommendationLevel.AVOID
    else:
        level = RecommendationLevel.STRONG_AVOID

    if area_grade in DOWNGRADE_GRADES[archetype]:
        index = min(RECOMMENDATION_ORDER.index(level) + 1, len(RECOMMENDATION_ORDER) - 1)
        level = RECOMMENDATION_ORDER[index]
    return level


def fmr_strength(subsidy_fmr: float) -> str:
    return (
        f"HUD Fair Market Rent of ${subsidy_fmr:,.0f}/mo "
        f"(${subsidy_fmr * 12:,.0f}/yr) backed by Section 8 payments"
    )


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


class ExpertSynthesizer:
    """Produces one opinion per investor archetype for a subject property."""

    def __init__(self, narrator: Optional[Narrator] = None):
        self.narrator = narrator or NullNarrator()

    async def synthesize(
        self,
        subject_price: float,
        comparable_avg_price: float,
        comparable_avg_rent: float,
        area_rating: AreaRating,
        subsidy_fmr: float,
    ) -> list[ExpertOpinion]:
        deal = DealContext(
            subject_price=subject_price or 0,
            comparable_avg_price=comparable_avg_price or 0,
            comparable_avg_rent=comparable_avg_rent or 0,
            area_grade=area_rating.grade,
            subsidy_fmr=subsidy_fmr or 0,
        )
        opinions = [self._aggressive(deal), self._conservative(deal), self._subsidized(deal)]

        narratives = await asyncio.gather(
            *(self.narrator.narrate(self._prompt(opinion, deal)) for opinion in opinions),
            return_exceptions=True,
        )

        for opinion, narrative in zip(opinions, narratives):
            if isinstance(narrative, Exception):
                logger.warning(
                    "Narrator failed, using template",
                    archetype=opinion.archetype.value,
                    error=str(narrative),
                )
                continue

            parsed = parse_narrative(narrative)
            if parsed:
                opinion.summary, opinion.strengths, opinion.concerns = parsed

        subsidized = opinions[2]
        required = fmr_strength(deal.subsidy_fmr)
        if required not in subsidized.strengths:
            subsidized.strengths.insert(0, required)

        return opinions

    @staticmethod
    def _prompt(opinion: ExpertOpinion, deal: DealContext) -> str:
        return NARRATIVE_PROMPT.format(
            expert_name=opinion.expert_name,
            expertise=opinion.expertise,
            subject_price=deal.subject_price,
            comparable_avg_price=deal.comparable_avg_price,
            comparable_avg_rent=deal.comparable_avg_rent,
            area_grade=deal.area_grade,
            subsidy_fmr=deal.subsidy_fmr,
            recommended_offer=opinion.recommended_offer,
            roi=opinion.roi_estimate,
            recommendation=opinion.recommendation.value,
            exit_strategy=opinion.exit_strategy,
        )

    @staticmethod
    def _opinion(
        archetype: Archetype,
        deal: DealContext,
        offer: float,
        roi: float,
        estimated_value: float,
    ) -> ExpertOpinion:
        expert = EXPERTS[archetype]
        recommendation = recommendation_for(archetype, roi, deal.area_grade)
        return ExpertOpinion(
            archetype=archetype,
            expert_name=expert["name"],
            expertise=expert["expertise"],
            recommended_offer=round(offer),
            exit_strategy=expert["exit_strategy"],
            roi_estimate=roi,
            recommendation=recommendation,
            rating=RATINGS[recommendation],
            estimated_value=round(estimated_value),
            confidence_level=expert["confidence"],
        )

    def _aggressive(self, deal: DealContext) -> ExpertOpinion:
        price = deal.subject_price
        offer = price * AGGRESSIVE_OFFER_RATIO
        rehab = price * AGGRESSIVE_REHAB_RATIO
        arv = max(deal.comparable_avg_price, price)
        roi = _ratio(arv - offer - rehab, offer + rehab)

        opinion = self._opinion(Archetype.AGGRESSIVE, deal, offer, roi, arv)
        opinion.summary = (
            f"Offering ${offer:,.0f} with a ${rehab:,.0f} rehab budget against an after-repair value "
            f"of ${arv:,.0f} projects a {roi:.0%} return. This works as a BRRRR or flip if the seller "
            f"accepts a deep discount."
        )
        opinion.strengths = [
            f"Offer of ${offer:,.0f} is 30% below asking",
            f"After-repair value of ${arv:,.0f} leaves room for forced appreciation",
        ]
        if deal.comparable_avg_price > price:
            opinion.strengths.append("Asking price is below the comparable average")
        opinion.concerns = [
            "Rehab costs can run past a 10% budget",
            "Sellers rarely accept a 30% discount without distress",
        ]
        if deal.area_grade in ("D", "F"):
            opinion.concerns.append(f"Area grade {deal.area_grade} may limit resale buyers")
        return opinion

    def _conservative(self, deal: DealContext) -> ExpertOpinion:
        price = deal.subject_price
        offer = price * CONSERVATIVE_OFFER_RATIO
        annual_rent = deal.comparable_avg_rent * 12
        roi = _ratio(annual_rent * (1 - CONSERVATIVE_EXPENSE_RATIO), offer)
        estimated_value = deal.comparable_avg_price or price

        opinion = self._opinion(Archetype.CONSERVATIVE, deal, offer, roi, estimated_value)
        opinion.summary = (
            f"At ${offer:,.0f}, rent of ${deal.comparable_avg_rent:,.0f}/mo nets a {roi:.1%} yield "
            f"after a 40% expense allowance. Suitable as a long-term hold if the numbers survive inspection."
        )
        opinion.strengths = [
            f"Net yield of {roi:.1%} at the recommended offer",
            "Offer stays close to asking, which keeps the deal competitive",
        ]
        if deal.area_grade in ("A", "B"):
            opinion.strengths.append(f"Area grade {deal.area_grade} supports stable tenancy")
        opinion.concerns = []
        if roi < ROI_THRESHOLDS[Archetype.CONSERVATIVE][1]:
            opinion.concerns.append("Cash flow is thin after expenses")
        if price > deal.comparable_avg_price > 0:
            opinion.concerns.append("Asking price is above the comparable average")
        if deal.area_grade in ("D", "F"):
            opinion.concerns.append(f"Area grade {deal.area_grade} raises vacancy and turnover risk")
        if not opinion.concerns:
            opinion.concerns.append("Returns depend on keeping vacancy and repairs within budget")
        return opinion

    def _subsidized(self, deal: DealContext) -> ExpertOpinion:
        price = deal.subject_price
        offer = price * SUBSIDIZED_OFFER_RATIO
        # Annual FMR over asking price; the basis is pending product confirmation
        roi = _ratio(deal.subsidy_fmr * 12, price)
        estimated_value = deal.comparable_avg_price or price

        opinion = self._opinion(Archetype.SUBSIDIZED, deal, offer, roi, estimated_value)
        opinion.summary = (
            f"Section 8 tenants at the ${deal.subsidy_fmr:,.0f}/mo Fair Market Rent would gross "
            f"{roi:.1%} of the asking price each year. An offer near ${offer:,.0f} suits a long hold "
            f"with guaranteed payments."
        )
        opinion.strengths = [
            fmr_strength(deal.subsidy_fmr),
            "Voucher waitlists keep vacancy low",
        ]
        opinion.concerns = [
            "Annual Housing Quality Standards inspections are required",
            "Rent increases are capped by the local payment standard",
        ]
        if deal.comparable_avg_rent > deal.subsidy_fmr:
            opinion.concerns.append("Market rent is above Fair Market Rent")
        return opinion
