"""Route to page-context lookup for the assistant orb."""

from assistant_orb.schemas.page import PageContext

DEFAULT_PATH = "/"

PAGE_CONTEXTS: dict[str, PageContext] = {
    "/": PageContext(
        page_name="AI Dashboard",
        description="Your main CRM overview with AI insights",
        suggestions=[
            "Show me today's top priorities",
            "What deals need attention?",
            "Generate a sales forecast",
            "Analyze pipeline performance",
        ],
        recent_actions=["Viewed dashboard metrics", "Generated AI insights"],
    ),
    "/deals": PageContext(
        page_name="Deals Management",
        description="Manage your sales pipeline and deals",
        suggestions=[
            "Create a new deal",
            "Find deals in closing stage",
            "Show deal analytics",
            "Update deal probabilities",
        ],
        recent_actions=["Viewed deals list", "Filtered by stage"],
    ),
    "/contacts": PageContext(
        page_name="Contacts Management",
        description="Manage customer and prospect relationships",
        suggestions=[
            "Add a new contact",
            "Find warm leads",
            "Schedule follow-ups",
            "Export contact list",
        ],
        recent_actions=["Viewed contacts", "Added new contact"],
    ),
    "/companies": PageContext(
        page_name="Companies",
        description="Manage organizational accounts",
        suggestions=[
            "Add new company",
            "Show company insights",
            "Find decision makers",
            "Track company interactions",
        ],
        recent_actions=["Viewed companies", "Updated company profile"],
    ),
    "/pipelines": PageContext(
        page_name="Pipeline View",
        description="Visual Kanban pipeline management",
        suggestions=[
            "Move deals between stages",
            "Analyze stage conversion",
            "Set up pipeline alerts",
            "Customize stage workflow",
        ],
        recent_actions=["Viewed pipeline", "Moved deal to next stage"],
    ),
}


def resolve(path: str) -> PageContext:
    """Return the context bundle for an exact path, or the dashboard bundle."""
    context = PAGE_CONTEXTS.get(path, PAGE_CONTEXTS[DEFAULT_PATH])
    return context.model_copy(deep=True)
