"""Fixed catalog of purchasable credit plans."""
from styloren.exceptions import PlanNotFoundError
from styloren.schemas.credit import CreditPlan

CREDIT_PLANS: tuple[CreditPlan, ...] = (
    CreditPlan(
        id="quick_try",
        name="Quick Try",
        credits=10,
        validity_days=15,
        validity_label="15 days",
        price="₹49",
        price_value=49,
        description="10 credits to explore Styloren, valid for 15 days",
        highlight=False,
        product_id="styloren_quick_try",
    ),
    CreditPlan(
        id="monthly_value",
        name="Monthly Value",
        credits=50,
        validity_days=30,
        validity_label="1 month",
        price="₹199",
        price_value=199,
        description="50 credits for consistent styling, valid for 1 month",
        highlight=False,
        product_id="styloren_monthly_value",
    ),
    CreditPlan(
        id="quarterly_saver",
        name="Quarterly Saver",
        credits=100,
        validity_days=90,
        validity_label="3 months",
        price="₹399",
        price_value=399,
        description="100 credits for serious style planning, valid for 3 months",
        highlight=True,
        product_id="styloren_quarterly_saver",
    ),
)


def list_plans() -> list[CreditPlan]:
    """Return the catalog in display order."""
    return list(CREDIT_PLANS)


def get_plan(plan_id: str) -> CreditPlan:
    """
    Look up a plan by id.

    Raises:
        PlanNotFoundError: If the id is not in the catalog
    """
    for plan in CREDIT_PLANS:
        if plan.id == plan_id:
            return plan
    raise PlanNotFoundError(f"Plan {plan_id} not found")
