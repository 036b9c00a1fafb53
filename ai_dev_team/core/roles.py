"""
Role implementations.

A role exposes its system prompt and an `execute(input, context)` operation
returning a RoleResult. PromptRole is backed by a completion backend through
an LLMRoleInvoker; the static roles return fixed output and cost nothing,
which keeps demos and tests deterministic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .exceptions import WorkflowError
from .models import RoleResult
from .output_parsers import OutputParser, get_parser
from .template_resolver import to_display_text

if TYPE_CHECKING:
    from .role_invoker import LLMRoleInvoker


TEAM_PROMPT_TEMPLATE = """You are a {name} working as part of an AI development team.

{body}

Guidelines:
- Be concise and focused on your specific role
- Output should be well-structured and ready for the next role
- Follow best practices for your domain
- Consider the context from previous steps
- Produce production-ready output"""


class Role(ABC):
    """
    A named unit of work.

    Implementations take the materialized step input plus the run context
    and return a RoleResult carrying the output and the cost it incurred.
    """

    id: str
    name: str

    @abstractmethod
    def system_prompt(self) -> str:
        pass

    @abstractmethod
    def execute(self, input: Any, context: Dict[str, Any]) -> RoleResult:
        pass


@dataclass
class RoleDefinition:
    """Declarative description of an LLM-backed role"""
    id: str
    name: str
    system_prompt: str
    description: str = ""
    temperature: float = 0.7
    max_tokens: int = 4096
    parser: str = "json_or_text"
    context_keys: Optional[List[str]] = None  # None means the whole context
    next_steps: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoleDefinition':
        return cls(
            id=data["id"],
            name=data["name"],
            system_prompt=data["system_prompt"],
            description=data.get("description", ""),
            temperature=data.get("temperature", 0.7),
            max_tokens=data.get("max_tokens", 4096),
            parser=data.get("parser", "json_or_text"),
            context_keys=data.get("context_keys"),
            next_steps=list(data.get("next_steps", [])),
            dependencies=list(data.get("dependencies", [])),
        )


class PromptRole(Role):
    """Role whose work is a single completion request"""

    def __init__(self, definition: RoleDefinition,
                 invoker: Optional['LLMRoleInvoker'] = None,
                 parser: Optional[OutputParser] = None):
        self.definition = definition
        self.id = definition.id
        self.name = definition.name
        self.temperature = definition.temperature
        self.max_tokens = definition.max_tokens
        self.parser: OutputParser = parser or get_parser(definition.parser)
        self.invoker = invoker

    def system_prompt(self) -> str:
        return TEAM_PROMPT_TEMPLATE.format(name=self.name, body=self.definition.system_prompt.strip())

    def relevant_context(self, context: Dict[str, Any]) -> Dict[str, Any]:
        keys = self.definition.context_keys
        if keys is None:
            return dict(context)
        return {k: v for k, v in context.items() if k in keys}

    def parse_output(self, text: str) -> Any:
        return self.parser(text)

    def execute(self, input: Any, context: Dict[str, Any]) -> RoleResult:
        if self.invoker is None:
            raise WorkflowError("Role has no completion invoker bound", role_id=self.id)
        result = self.invoker.invoke(self, input, context)
        result.next_steps = list(self.definition.next_steps)
        result.dependencies = list(self.definition.dependencies)
        return result


# ============================================================================
# Static roles
# ============================================================================

class StaticRole(Role):
    """Role returning canned output"""

    description = ""

    def system_prompt(self) -> str:
        return TEAM_PROMPT_TEMPLATE.format(name=self.name, body=self.description)


class ProductManagerRole(StaticRole):
    id = "product-manager"
    name = "Product Manager"
    description = "Turn a project request into clear, actionable requirements."

    def execute(self, input: Any, context: Dict[str, Any]) -> RoleResult:
        output = f"""# Todo Application Requirements

## Overview
A modern todo application with the following features:

## Core Features
1. **Task Management**
   - Create new todos
   - Mark todos as complete
   - Delete todos
   - Edit todo text

2. **User Interface**
   - Clean, modern design
   - Responsive layout
   - Real-time updates

3. **Data Persistence**
   - Local storage for now
   - API ready for backend

## Technical Requirements
- React with TypeScript
- Tailwind CSS for styling
- Component-based architecture
- Mobile-friendly design

Input: {to_display_text(input)}"""
        return RoleResult(
            output=output,
            next_steps=["frontend_design", "backend_architecture"],
        )


class FrontendDeveloperRole(StaticRole):
    id = "frontend-developer"
    name = "Frontend Developer"
    description = "Build React components from the requirements."

    def execute(self, input: Any, context: Dict[str, Any]) -> RoleResult:
        requirements = input.get("requirements", input) if isinstance(input, dict) else input
        summary = to_display_text(requirements)[:50]
        output = f"""// TodoApp.tsx
import React, {{ useState }} from 'react';

interface Todo {{
  id: number;
  text: string;
  completed: boolean;
}}

export function TodoApp() {{
  const [todos, setTodos] = useState<Todo[]>([]);
  const [inputText, setInputText] = useState('');

  const addTodo = () => {{
    if (inputText.trim()) {{
      setTodos([...todos, {{ id: Date.now(), text: inputText, completed: false }}]);
      setInputText('');
    }}
  }};

  return (
    <div className="max-w-md mx-auto mt-8 p-6">
      <h1 className="text-2xl font-bold mb-4">Todo App</h1>
      {{/* Implementation based on: {summary}... */}}
    </div>
  );
}}"""
        return RoleResult(output=output, dependencies=["requirements"])


class BackendDeveloperRole(StaticRole):
    id = "backend-developer"
    name = "Backend Developer"
    description = "Implement the API routes the frontend needs."

    def execute(self, input: Any, context: Dict[str, Any]) -> RoleResult:
        output = """// api/todos.ts
import { NextApiRequest, NextApiResponse } from 'next';

let todos: Todo[] = [];

export default function handler(req: NextApiRequest, res: NextApiResponse) {
  switch (req.method) {
    case 'GET':
      return res.status(200).json(todos);
    case 'POST':
      const newTodo = { ...req.body, id: Date.now() };
      todos.push(newTodo);
      return res.status(201).json(newTodo);
    default:
      return res.status(405).end();
  }
}"""
        return RoleResult(output=output, dependencies=["requirements"])


class StripeExpertRole(StaticRole):
    id = "stripe-expert"
    name = "Stripe Payment Expert"
    description = "Add Stripe checkout and subscriptions to the project."

    def execute(self, input: Any, context: Dict[str, Any]) -> RoleResult:
        output = """// stripe-integration.ts
import Stripe from 'stripe';
import { loadStripe } from '@stripe/stripe-js';

// api/create-checkout-session.ts
const stripe = new Stripe(process.env.STRIPE_SECRET_KEY!);

export default async function handler(req, res) {
  const session = await stripe.checkout.sessions.create({
    payment_method_types: ['card'],
    line_items: [{
      price_data: {
        currency: 'usd',
        product_data: { name: 'Todo Pro Subscription' },
        unit_amount: 999,
      },
      quantity: 1,
    }],
    mode: 'subscription',
    success_url: `${req.headers.origin}/success`,
    cancel_url: `${req.headers.origin}/cancel`,
  });

  res.status(200).json({ sessionId: session.id });
}

// CheckoutButton.tsx
export const CheckoutButton = () => {
  const handleCheckout = async () => {
    const stripe = await loadStripe(process.env.NEXT_PUBLIC_STRIPE_KEY!);
    const response = await fetch('/api/create-checkout-session', { method: 'POST' });
    const session = await response.json();
    await stripe?.redirectToCheckout({ sessionId: session.sessionId });
  };

  return (
    <button onClick={handleCheckout} className="bg-purple-600 text-white px-4 py-2 rounded">
      Upgrade to Pro - $9.99/mo
    </button>
  );
};"""
        return RoleResult(
            output=output,
            next_steps=["test_payments", "configure_stripe_dashboard"],
            dependencies=["api_routes", "frontend_components"],
        )
