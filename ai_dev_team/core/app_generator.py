"""
App generator: turns a build's role outputs into a Next.js project on disk.

`generate_files` is pure and returns the file list; `AppGenerator.write`
puts it under an output root.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from .models import AppOutput, GeneratedFile
from .schema_loader import normalize_path
from .template_resolver import to_display_text


BASE_DEPENDENCIES: Dict[str, str] = {
    "next": "14.1.0",
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "typescript": "^5.3.3",
    "@types/node": "^20.11.0",
    "@types/react": "^18.2.48",
    "@types/react-dom": "^18.2.18",
    "tailwindcss": "^3.4.1",
    "autoprefixer": "^10.4.17",
    "postcss": "^8.4.33",
}

STRIPE_DEPENDENCIES: Dict[str, str] = {
    "stripe": "^14.14.0",
    "@stripe/stripe-js": "^2.4.0",
}

LAYOUT_TSX = """import type { Metadata } from 'next';
import { Inter } from 'next/font/google';
import './globals.css';

const inter = Inter({ subsets: ['latin'] });

export const metadata: Metadata = {
  title: 'Todo App',
  description: 'A modern todo application built by an AI development team',
};

export default function RootLayout({ children }: { children: React.ReactNode }) {
  return (
    <html lang="en">
      <body className={inter.className}>{children}</body>
    </html>
  );
}
"""

GLOBALS_CSS = """@tailwind base;
@tailwind components;
@tailwind utilities;
"""

TODO_COMPONENT_TSX = """'use client';

import { useState, useEffect } from 'react';

interface Todo {
  id: number;
  text: string;
  completed: boolean;
}

export default function TodoApp() {
  const [todos, setTodos] = useState<Todo[]>([]);
  const [inputText, setInputText] = useState('');
  const [loading, setLoading] = useState(true);

  useEffect(() => {
    fetch('/api/todos')
      .then((res) => res.json())
      .then(setTodos)
      .catch((error) => console.error('Failed to fetch todos:', error))
      .finally(() => setLoading(false));
  }, []);

  const addTodo = async () => {
    if (!inputText.trim()) return;
    const res = await fetch('/api/todos', {
      method: 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: JSON.stringify({ text: inputText, completed: false }),
    });
    const newTodo = await res.json();
    setTodos([...todos, newTodo]);
    setInputText('');
  };

  const toggleTodo = (id: number) =>
    setTodos(todos.map((todo) => (todo.id === id ? { ...todo, completed: !todo.completed } : todo)));

  const deleteTodo = (id: number) => setTodos(todos.filter((todo) => todo.id !== id));

  if (loading) {
    return <div className="text-center mt-8">Loading...</div>;
  }

  return (
    <div className="max-w-2xl mx-auto p-6 bg-white rounded-lg shadow-lg">
      <h1 className="text-3xl font-bold text-gray-800 mb-6">My Todos</h1>
      <div className="flex gap-2 mb-6">
        <input
          type="text"
          value={inputText}
          onChange={(e) => setInputText(e.target.value)}
          onKeyDown={(e) => e.key === 'Enter' && addTodo()}
          placeholder="Add a new todo..."
          className="flex-1 px-4 py-2 border rounded-lg"
        />
        <button onClick={addTodo} className="px-6 py-2 bg-blue-500 text-white rounded-lg">
          Add
        </button>
      </div>
      <div className="space-y-2">
        {todos.map((todo) => (
          <div key={todo.id} className="flex items-center gap-3 p-3 bg-gray-50 rounded-lg">
            <input type="checkbox" checked={todo.completed} onChange={() => toggleTodo(todo.id)} />
            <span className={`flex-1 ${todo.completed ? 'line-through text-gray-500' : 'text-gray-800'}`}>
              {todo.text}
            </span>
            <button onClick={() => deleteTodo(todo.id)} className="text-red-500">
              Delete
            </button>
          </div>
        ))}
      </div>
      {todos.length === 0 && <p className="text-center text-gray-500 mt-6">No todos yet. Add one above!</p>}
    </div>
  );
}
"""

TODOS_ROUTE_TS = """import { NextRequest, NextResponse } from 'next/server';

// In-memory storage for demo
let todos: any[] = [];

export async function GET() {
  return NextResponse.json(todos);
}

export async function POST(request: NextRequest) {
  const body = await request.json();
  const newTodo = { id: Date.now(), ...body };
  todos.push(newTodo);
  return NextResponse.json(newTodo, { status: 201 });
}
"""

CHECKOUT_ROUTE_TS = """import { NextRequest, NextResponse } from 'next/server';
import Stripe from 'stripe';

const stripe = new Stripe(process.env.STRIPE_SECRET_KEY!, {
  apiVersion: '2023-10-16',
});

export async function POST(request: NextRequest) {
  try {
    const session = await stripe.checkout.sessions.create({
      payment_method_types: ['card'],
      line_items: [{
        price_data: {
          currency: 'usd',
          product_data: { name: 'Todo Pro Subscription' },
          unit_amount: 999,
          recurring: { interval: 'month' },
        },
        quantity: 1,
      }],
      mode: 'subscription',
      success_url: `${request.headers.get('origin')}/success`,
      cancel_url: `${request.headers.get('origin')}/`,
    });
    return NextResponse.json({ sessionId: session.id });
  } catch (error) {
    console.error('Stripe error:', error);
    return NextResponse.json({ error: 'Failed to create checkout session' }, { status: 500 });
  }
}
"""

CHECKOUT_BUTTON_TSX = """'use client';

import { loadStripe } from '@stripe/stripe-js';

const stripePromise = loadStripe(process.env.NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY!);

export default function CheckoutButton() {
  const handleCheckout = async () => {
    const stripe = await stripePromise;
    const response = await fetch('/api/create-checkout-session', { method: 'POST' });
    const { sessionId } = await response.json();
    const result = await stripe?.redirectToCheckout({ sessionId });
    if (result?.error) {
      console.error(result.error.message);
    }
  };

  return (
    <button
      onClick={handleCheckout}
      className="fixed bottom-4 right-4 bg-purple-600 text-white px-6 py-3 rounded-lg shadow-lg"
    >
      Upgrade to Pro - $9.99/mo
    </button>
  );
}
"""

ENV_EXAMPLE = """# Stripe API keys
STRIPE_SECRET_KEY=sk_test_YOUR_SECRET_KEY
NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY=pk_test_YOUR_PUBLISHABLE_KEY
"""

TAILWIND_CONFIG = """/** @type {import('tailwindcss').Config} */
module.exports = {
  content: ['./src/**/*.{js,ts,jsx,tsx,mdx}'],
  theme: { extend: {} },
  plugins: [],
};
"""

POSTCSS_CONFIG = """module.exports = {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
};
"""

NEXT_CONFIG = """/** @type {import('next').NextConfig} */
const nextConfig = {};

module.exports = nextConfig;
"""

TSCONFIG: Dict[str, Any] = {
    "compilerOptions": {
        "target": "es5",
        "lib": ["dom", "dom.iterable", "esnext"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "incremental": True,
        "plugins": [{"name": "next"}],
        "paths": {"@/*": ["./src/*"]},
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
    "exclude": ["node_modules"],
}


def package_json(name: str, has_stripe: bool) -> str:
    dependencies = dict(BASE_DEPENDENCIES)
    if has_stripe:
        dependencies.update(STRIPE_DEPENDENCIES)
    return json.dumps({
        "name": name,
        "version": "0.1.0",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
        },
        "dependencies": dependencies,
    }, indent=2) + "\n"


def main_page(has_stripe: bool) -> str:
    imports = ["import TodoApp from '@/components/TodoApp';"]
    body = ["      <TodoApp />"]
    if has_stripe:
        imports.append("import CheckoutButton from '@/components/CheckoutButton';")
        body.append("      <CheckoutButton />")
    return "\n".join(imports) + f"""

export default function Home() {{
  return (
    <main className="min-h-screen bg-gray-50 py-8">
{chr(10).join(body)}
    </main>
  );
}}
"""


def readme(name: str, has_stripe: bool) -> str:
    lines = [
        f"# {name}",
        "",
        "This application was generated by an AI development team.",
        "",
        "## Features",
        "",
        "- ✅ Create, complete, and delete todos",
        "- 💾 In-memory storage (easily replaceable with a database)",
        "- 🎨 Modern UI with Tailwind CSS",
        "- 📱 Fully responsive design",
    ]
    if has_stripe:
        lines.append("- 💳 Stripe payment integration for Pro features")

    lines += ["", "## Getting Started", "", "1. Install dependencies: `npm install`"]
    step = 2
    if has_stripe:
        lines.append(f"{step}. Copy `.env.local.example` to `.env.local` and add your Stripe API keys")
        step += 1
    lines.append(f"{step}. Run the development server: `npm run dev`")
    lines.append(f"{step + 1}. Open http://localhost:3000")

    lines += [
        "",
        "## Built By",
        "",
        "- **Product Manager**: requirements and features (`docs/requirements.md`)",
        "- **Frontend Developer**: React UI components (`docs/frontend.md`)",
        "- **Backend Developer**: API routes (`docs/backend.md`)",
    ]
    if has_stripe:
        lines.append("- **Stripe Expert**: payment processing (`docs/payments.md`)")

    lines += [
        "",
        "## Next Steps",
        "",
        "- Add a database (PostgreSQL, MongoDB, etc.)",
        "- Implement user authentication",
        "- Configure Stripe webhooks for subscription management" if has_stripe
        else "- Add payment processing with the Stripe Expert role",
        "",
    ]
    return "\n".join(lines)


def role_document(title: str, output: Any) -> str:
    return f"# {title}\n\n{to_display_text(output)}\n"


def generate_files(output: AppOutput) -> List[GeneratedFile]:
    """All files of the generated project, relative to its root"""
    has_stripe = bool(output.payment_code)

    files = [
        GeneratedFile("package.json", package_json(output.name, has_stripe)),
        GeneratedFile("src/app/page.tsx", main_page(has_stripe)),
        GeneratedFile("src/app/layout.tsx", LAYOUT_TSX),
        GeneratedFile("src/app/globals.css", GLOBALS_CSS),
        GeneratedFile("src/components/TodoApp.tsx", TODO_COMPONENT_TSX),
        GeneratedFile("src/app/api/todos/route.ts", TODOS_ROUTE_TS),
    ]

    if has_stripe:
        files += [
            GeneratedFile("src/app/api/create-checkout-session/route.ts", CHECKOUT_ROUTE_TS),
            GeneratedFile("src/components/CheckoutButton.tsx", CHECKOUT_BUTTON_TSX),
            GeneratedFile(".env.local.example", ENV_EXAMPLE),
        ]

    files += [
        GeneratedFile("tailwind.config.js", TAILWIND_CONFIG),
        GeneratedFile("postcss.config.js", POSTCSS_CONFIG),
        GeneratedFile("next.config.js", NEXT_CONFIG),
        GeneratedFile("tsconfig.json", json.dumps(TSCONFIG, indent=2) + "\n"),
        GeneratedFile("README.md", readme(output.name, has_stripe)),
        GeneratedFile("docs/requirements.md", role_document("Requirements", output.requirements)),
        GeneratedFile("docs/frontend.md", role_document("Frontend", output.frontend_code)),
        GeneratedFile("docs/backend.md", role_document("Backend", output.backend_code)),
    ]
    if has_stripe:
        files.append(GeneratedFile("docs/payments.md", role_document("Payments", output.payment_code)))

    return files


class AppGenerator:
    """Writes generated projects under `output_root/<name>`"""

    def __init__(self, output_root: Path):
        self.output_root = Path(output_root)

    def write(self, output: AppOutput) -> Path:
        """
        Write the project and return its directory.

        Raises:
            SecurityError: If the app name or a file path escapes the output root
        """
        self.output_root.mkdir(parents=True, exist_ok=True)
        app_dir = normalize_path(self.output_root, output.name)
        for generated in generate_files(output):
            target = normalize_path(app_dir, generated.path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.content, encoding="utf-8")
        return app_dir
