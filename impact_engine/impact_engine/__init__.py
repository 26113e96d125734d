"""Impact reconciliation and report synthesis for pipeline model changes."""
