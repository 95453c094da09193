"""Extension risk scoring: permission catalog, host scope, CSP and the combined report."""
