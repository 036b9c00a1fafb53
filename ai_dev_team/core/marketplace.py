"""
Marketplace of premium roles: catalog, licenses and purchase.
"""

import warnings
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set, TYPE_CHECKING

import yaml

from .exceptions import LicenseError
from .models import MarketplaceRoleMetadata, PurchaseResult
from .roles import PromptRole, Role, RoleDefinition, StripeExpertRole

if TYPE_CHECKING:
    from .role_invoker import LLMRoleInvoker


DEMO_LICENSE_KEYS = frozenset({"DEMO-2024", "MPCM-STRIPE-EXPERT"})

STRIPE_EXPERT = MarketplaceRoleMetadata(
    id="stripe-expert",
    name="Stripe Payment Expert",
    description="Complete Stripe integration with checkout, subscriptions, and webhooks",
    price=29,
    capabilities=(
        "payment-processing",
        "subscriptions",
        "invoicing",
        "customer-portal",
        "webhooks",
    ),
    author="mpcm-pro",
    version="1.0.0",
    rating=4.9,
    downloads=1249,
)

STRIPE_EXPERT_PROMPT = """You are a Stripe Payments Integration Expert.
You specialize in implementing complete payment systems using Stripe.

Your expertise includes:
- Stripe Checkout for one-time payments
- Subscription management with Stripe Billing
- Customer portal setup
- Webhook handling for payment events
- Invoice generation and management
- Payment method management
- SCA/3D Secure compliance

When implementing payments, you provide:
1. Complete Stripe integration code
2. Secure API route implementations
3. Frontend checkout components
4. Webhook handlers
5. Testing instructions

Always:
- Never expose secret keys client-side
- Implement proper error handling
- Add idempotency keys
- Handle all webhook events properly
- Include proper TypeScript types

Output production-ready code that handles real money."""

PREMIUM_PROMPTS: Dict[str, str] = {
    "stripe-expert": STRIPE_EXPERT_PROMPT,
}


def validate_license(role_id: str, license_key: str) -> None:
    """
    Raises:
        LicenseError: If the key is not accepted
    """
    if license_key not in DEMO_LICENSE_KEYS:
        raise LicenseError(role_id)


class MarketplaceRegistry:
    """
    Catalog of premium roles and who holds a license for each.

    Purchases are simulated and instant. Buying a role the user already owns
    succeeds again without changing anything. With a `license_file` (YAML),
    licenses survive between processes.
    """

    def __init__(self, invoker: Optional['LLMRoleInvoker'] = None,
                 include_defaults: bool = True,
                 license_file: Optional[Path] = None):
        self.invoker = invoker
        self.license_file = Path(license_file) if license_file else None
        self._roles: Dict[str, MarketplaceRoleMetadata] = {}
        self._licenses: Dict[str, Set[str]] = {}
        if include_defaults:
            self.add_role(STRIPE_EXPERT)
        if self.license_file and self.license_file.exists():
            self._load_licenses()

    def add_role(self, metadata: MarketplaceRoleMetadata) -> None:
        self._roles[metadata.id] = metadata

    def get_role_metadata(self, role_id: str) -> Optional[MarketplaceRoleMetadata]:
        return self._roles.get(role_id)

    def list_roles(self) -> List[MarketplaceRoleMetadata]:
        return [self._roles[k] for k in sorted(self._roles)]

    def has_license(self, role_id: str, user_id: str) -> bool:
        return user_id in self._licenses.get(role_id, set())

    def licensed_users(self, role_id: str) -> FrozenSet[str]:
        return frozenset(self._licenses.get(role_id, set()))

    def purchase(self, role_id: str, user_id: str) -> PurchaseResult:
        role = self._roles.get(role_id)
        if not role:
            return PurchaseResult(success=False, message="Role not found")

        holders = self._licenses.setdefault(role_id, set())
        if user_id not in holders:
            holders.add(user_id)
            self._save_licenses()
        return PurchaseResult(
            success=True,
            message=f"Successfully purchased {role.name} for ${role.price}",
        )

    def purchase_with_license(self, role_id: str, user_id: str, license_key: str) -> PurchaseResult:
        """Redeem a license key; an invalid key leaves licenses unchanged"""
        if role_id not in self._roles:
            return PurchaseResult(success=False, message="Role not found")
        try:
            validate_license(role_id, license_key)
        except LicenseError as e:
            return PurchaseResult(success=False, message=str(e))
        return self.purchase(role_id, user_id)

    def create_executable_role(self, metadata: MarketplaceRoleMetadata) -> Role:
        """
        Build a runnable role for a catalog entry.

        With an invoker bound, the role is LLM-backed using its premium
        prompt; otherwise the static Stripe role is returned.
        """
        if self.invoker is None:
            return StripeExpertRole()

        definition = RoleDefinition(
            id=metadata.id,
            name=metadata.name,
            description=metadata.description,
            system_prompt=PREMIUM_PROMPTS.get(metadata.id, metadata.description),
            parser="text",
            next_steps=["test_payments", "configure_stripe_dashboard"],
            dependencies=["api_routes", "frontend_components"],
        )
        return PremiumRole(definition, invoker=self.invoker)

    def _load_licenses(self) -> None:
        try:
            with self.license_file.open('r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            for role_id, users in data.get("licenses", {}).items():
                self._licenses[role_id] = set(users or [])
        except Exception as e:
            warnings.warn(f"Failed to load licenses from {self.license_file}: {e}")

    def _save_licenses(self) -> None:
        if not self.license_file:
            return
        try:
            self.license_file.parent.mkdir(parents=True, exist_ok=True)
            data = {"licenses": {k: sorted(v) for k, v in sorted(self._licenses.items())}}
            with self.license_file.open('w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, allow_unicode=True)
        except Exception as e:
            warnings.warn(f"Failed to save licenses to {self.license_file}: {e}")


class PremiumRole(PromptRole):
    """Marketplace role; its prompt is used as-is, without the team preamble"""

    def system_prompt(self) -> str:
        return self.definition.system_prompt
