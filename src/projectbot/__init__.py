"""projectbot - conversational assistant for Nobl9 projects and role assignment."""
