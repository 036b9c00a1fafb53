"""
App builder: the end-to-end "describe an app, get a project" flow.

Runs requirements, frontend and backend roles, suggests or uses the
premium payments role when the app needs payments, and writes the
generated project.
"""

import time
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .app_generator import AppGenerator
from .enums import BuildStatus, StepStatus
from .marketplace import MarketplaceRegistry
from .models import (
    AppOutput, BuildOptions, BuildResult, MarketplaceRoleMetadata,
    PurchaseResult, WorkflowStep,
)
from .orchestrator import Orchestrator, new_run_id
from .template_resolver import to_display_text

if TYPE_CHECKING:
    from .role_invoker import LLMRoleInvoker


REQUIREMENTS = "Requirements Analysis"
FRONTEND = "Frontend Development"
BACKEND = "Backend Development"
INTEGRATION = "Integration"
DEPLOYMENT = "Deployment"

# Phase name and the percentage reached when it completes
PHASES: List[Tuple[str, int]] = [
    (REQUIREMENTS, 20),
    (FRONTEND, 40),
    (BACKEND, 60),
    (INTEGRATION, 80),
    (DEPLOYMENT, 100),
]

PAYMENTS_ROLE_ID = "stripe-expert"
DEFAULT_USER_ID = "current-user"

BUILD_STEPS = {
    REQUIREMENTS: WorkflowStep("product-manager", "{{project_description}}", "requirements", name=REQUIREMENTS),
    FRONTEND: WorkflowStep("frontend-developer", {"requirements": "{{requirements}}"}, "frontend_code", name=FRONTEND),
    BACKEND: WorkflowStep("backend-developer", {"requirements": "{{requirements}}"}, "backend_code", name=BACKEND),
    INTEGRATION: WorkflowStep(PAYMENTS_ROLE_ID, "Add Stripe payment integration", "payment_code", name=INTEGRATION),
}


def needs_payments(description: str, requirements: Any) -> bool:
    description = description.lower()
    return (
        "payment" in to_display_text(requirements).lower()
        or "payment" in description
        or "stripe" in description
    )


def suggestion_message(role: MarketplaceRoleMetadata) -> str:
    return (
        f"I noticed your app needs payment processing. The {role.name} role can add "
        f"professional Stripe integration with:\n"
        f"• Secure checkout flow\n"
        f"• Subscription management\n"
        f"• Customer portal\n"
        f"• Automated invoicing\n"
        f"• Webhook handling\n\n"
        f"This premium role costs ${role.price} and will save hours of development time."
    )


class AppBuilder:
    """
    Builds an app from a natural-language description.

    Progress is tracked per run in the orchestrator's ProgressTracker under
    the five phases in PHASES. The returned BuildResult is always one of
    success, marketplace suggestion or error; failures never raise.
    """

    def __init__(self, orchestrator: Orchestrator, marketplace: MarketplaceRegistry,
                 generator: AppGenerator, user_id: str = DEFAULT_USER_ID,
                 invoker: Optional['LLMRoleInvoker'] = None):
        self.orchestrator = orchestrator
        self.marketplace = marketplace
        self.generator = generator
        self.user_id = user_id
        self.invoker = invoker

    @property
    def progress(self):
        return self.orchestrator.progress

    def build_app(self, description: str, options: Optional[BuildOptions] = None) -> BuildResult:
        options = options or BuildOptions()
        if options.streaming and self.invoker is not None:
            with self.invoker.streaming(True):
                return self._build(description, options)
        return self._build(description, options)

    def _build(self, description: str, options: BuildOptions) -> BuildResult:
        run_id = new_run_id()
        started = time.monotonic()
        self.progress.create(run_id, [name for name, _ in PHASES])

        phase, reached = REQUIREMENTS, 0
        try:
            context: Dict[str, Any] = {"project_description": description}
            total_cost = 0.0

            cost = self._run_phase(run_id, REQUIREMENTS, 0, 20, context)
            total_cost += cost

            payments = needs_payments(description, context["requirements"])
            stripe_role = self.marketplace.get_role_metadata(PAYMENTS_ROLE_ID)
            if payments and options.use_marketplace and stripe_role \
                    and not self.marketplace.has_license(stripe_role.id, self.user_id):
                return BuildResult(
                    status=BuildStatus.MARKETPLACE_SUGGESTION,
                    run_id=run_id,
                    message=suggestion_message(stripe_role),
                    suggestion={
                        "role_id": stripe_role.id,
                        "role_name": stripe_role.name,
                        "price": stripe_role.price,
                        "capabilities": list(stripe_role.capabilities),
                    },
                )

            phase, reached = FRONTEND, 20
            total_cost += self._run_phase(run_id, FRONTEND, 20, 40, context)
            phase, reached = BACKEND, 40
            total_cost += self._run_phase(run_id, BACKEND, 40, 60, context)

            phase, reached = INTEGRATION, 60
            self.progress.update(run_id, 60, INTEGRATION, StepStatus.RUNNING)
            integration_cost = 0.0
            if payments and stripe_role and self.marketplace.has_license(stripe_role.id, self.user_id):
                role = self.marketplace.create_executable_role(stripe_role)
                result = self.orchestrator.execute_role(role, BUILD_STEPS[INTEGRATION], context, run_id=run_id)
                integration_cost = result.cost
                total_cost += integration_cost
            self.progress.update(run_id, 80, INTEGRATION, StepStatus.COMPLETED, cost=integration_cost)

            phase, reached = DEPLOYMENT, 80
            self.progress.update(run_id, 80, DEPLOYMENT, StepStatus.RUNNING)
            app_name = f"app-{run_id}"
            app_dir = self.generator.write(AppOutput(
                name=app_name,
                requirements=context["requirements"],
                frontend_code=context["frontend_code"],
                backend_code=context["backend_code"],
                payment_code=context.get("payment_code"),
            ))
            self.progress.update(run_id, 100, DEPLOYMENT, StepStatus.COMPLETED)

            elapsed = round(time.monotonic() - started)
            return BuildResult(
                status=BuildStatus.SUCCESS,
                run_id=run_id,
                summary=self._summary(app_name, "payment_code" in context, total_cost, elapsed),
                deployment_location=str(app_dir),
                total_cost=total_cost,
            )

        except Exception as e:
            self.progress.update(run_id, reached, phase, StepStatus.ERROR)
            return BuildResult(
                status=BuildStatus.ERROR,
                run_id=run_id,
                message=f"Error building app: {phase} failed: {e}",
            )

    def _run_phase(self, run_id: str, phase: str, start: int, end: int,
                   context: Dict[str, Any]) -> float:
        self.progress.update(run_id, start, phase, StepStatus.RUNNING)
        result = self.orchestrator.execute_step(BUILD_STEPS[phase], context, run_id=run_id)
        self.progress.update(run_id, end, phase, StepStatus.COMPLETED, cost=result.cost)
        return result.cost

    @staticmethod
    def _summary(app_name: str, with_payments: bool, total_cost: float, elapsed: int) -> str:
        lines = [
            f"Created {app_name} with:",
            "• Requirements analysis by AI Product Manager",
            "• Frontend built by AI Frontend Developer",
            "• Backend API by AI Backend Developer",
        ]
        if with_payments:
            lines.append("• Professional Stripe integration")
        lines += [
            "• Ready for deployment",
            "",
            f"Total AI cost: ${total_cost:.2f}",
            f"Time: {elapsed} seconds",
        ]
        return "\n".join(lines)

    def get_progress(self, run_id: str) -> Optional[Dict[str, Any]]:
        progress = self.progress.get(run_id) or self.progress.load(run_id)
        return progress.to_dict() if progress else None

    def purchase_role(self, role_id: str, user_id: Optional[str] = None,
                      license_key: Optional[str] = None) -> PurchaseResult:
        user_id = user_id or self.user_id
        if license_key is not None:
            return self.marketplace.purchase_with_license(role_id, user_id, license_key)
        return self.marketplace.purchase(role_id, user_id)
