"""Base Vite + React + Tailwind (JSX) project the resolved components are overlaid on."""
from __future__ import annotations

import json
from typing import Dict

from constants import Constants

INDEX_HTML = """\
<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{title}</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.jsx"></script>
  </body>
</html>
"""

VITE_CONFIG = """\
import path from "path";
import { defineConfig } from "vite";
import react from "@vitejs/plugin-react";

export default defineConfig({
  plugins: [react()],
  resolve: {
    alias: {
      "@": path.resolve(__dirname, "./src"),
    },
  },
});
"""

JSCONFIG = {
    "compilerOptions": {
        "baseUrl": ".",
        "jsx": "react-jsx",
        "paths": {"@/*": ["./src/*"]},
    },
}

TAILWIND_CONFIG = """\
export default {
  content: ["./index.html", "./src/**/*.{js,jsx}"],
  theme: {
    extend: {},
  },
  plugins: [],
};
"""

POSTCSS_CONFIG = """\
export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
};
"""

INDEX_CSS = """\
@tailwind base;
@tailwind components;
@tailwind utilities;
"""

UTILS_JS = """\
import { clsx } from "clsx";
import { twMerge } from "tailwind-merge";

export function cn(...inputs) {
  return twMerge(clsx(inputs));
}
"""

MAIN_JSX = """\
import React from "react";
import { createRoot } from "react-dom/client";
import App from "./App.jsx";
import "./index.css";

createRoot(document.getElementById("root")).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>
);
"""

APP_JSX = """\
import React from "react";
import { DefaultLandingComponent } from "./landing";

function App() {
  return (
    <div className="flex h-full w-full items-center justify-center">
      <DefaultLandingComponent />
    </div>
  );
}

export default App;
"""

LANDING_JSX = """\
export function DefaultLandingComponent() {
  return (
    <div className="flex min-h-screen items-center justify-center bg-slate-50 p-6">
      <div className="w-full max-w-lg rounded-xl bg-white p-10 text-center shadow-xl">
        <h1 className="mb-4 text-3xl font-bold text-slate-900">Custom component</h1>
        <p className="text-slate-600">
          Edit <code className="rounded bg-slate-200 px-2 py-0.5">src/App.jsx</code> to get started.
        </p>
      </div>
    </div>
  );
}
"""

RUNTIME_DEPENDENCIES = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "clsx": "^2.0.0",
    "tailwind-merge": "^2.2.0",
}

DEV_DEPENDENCIES = {
    "@vitejs/plugin-react": "^4.2.1",
    "autoprefixer": "^10.4.16",
    "postcss": "^8.4.31",
    "tailwindcss": "^3.4.0",
    "vite": "^5.1.6",
}


def package_json(project_name: str) -> str:
    manifest = {
        "name": project_name,
        "private": True,
        "version": "0.0.0",
        "type": "module",
        "scripts": {
            "dev": "vite",
            "build": "vite build",
            "preview": "vite preview",
        },
        "dependencies": dict(RUNTIME_DEPENDENCIES),
        "devDependencies": dict(DEV_DEPENDENCIES),
    }
    return json.dumps(manifest, indent=2) + "\n"


def load_base_template(project_name: str = Constants.DEFAULT_PROJECT_NAME) -> Dict[str, str]:
    """Return a fresh copy of the base project, keyed by virtual path."""
    return {
        "/index.html": INDEX_HTML.format(title=project_name),
        Constants.MANIFEST_PATH: package_json(project_name),
        "/vite.config.js": VITE_CONFIG,
        "/jsconfig.json": json.dumps(JSCONFIG, indent=2) + "\n",
        "/tailwind.config.js": TAILWIND_CONFIG,
        "/postcss.config.js": POSTCSS_CONFIG,
        "/src/index.css": INDEX_CSS,
        "/src/lib/utils.js": UTILS_JS,
        "/src/main.jsx": MAIN_JSX,
        "/src/App.jsx": APP_JSX,
        "/src/landing/index.jsx": LANDING_JSX,
    }
