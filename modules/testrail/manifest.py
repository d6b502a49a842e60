"""TestRail module manifest: tool definitions for projects, runs, cases and results."""

from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

_STATUS_IDS = "Status IDs to filter by: 1=passed, 2=blocked, 3=untested, 4=retest, 5=failed"

MANIFEST = ModuleManifest(
    module_name="testrail",
    description="Read and update TestRail projects, test runs, cases, milestones and results.",
    tools=[
        # ---- Projects ----
        ToolDefinition(
            name="testrail.get_projects",
            description="Gets a list of all projects from TestRail.",
            parameters=[
                ToolParameter(
                    name="is_completed",
                    type="boolean",
                    description="Only return completed (true) or active (false) projects",
                    required=False,
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.get_project",
            description="Gets details for a single project from TestRail.",
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="integer",
                    description="The ID of the project in TestRail.",
                ),
            ],
        ),
        # ---- Runs ----
        ToolDefinition(
            name="testrail.get_test_runs_for_project",
            description=(
                "Gets a list of test runs for a specific project from TestRail. "
                "Can be filtered by completion state, milestone, suite and creation date."
            ),
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="integer",
                    description="The ID of the project in TestRail.",
                ),
                ToolParameter(
                    name="is_completed",
                    type="boolean",
                    description="Only return completed (true) or active (false) runs",
                    required=False,
                ),
                ToolParameter(
                    name="milestone_id",
                    type="integer",
                    description="Only return runs that belong to this milestone",
                    required=False,
                ),
                ToolParameter(
                    name="suite_id",
                    type="integer",
                    description="Only return runs based on this test suite",
                    required=False,
                ),
                ToolParameter(
                    name="created_after",
                    type="integer",
                    description="Only return runs created after this UNIX timestamp",
                    required=False,
                ),
                ToolParameter(
                    name="created_before",
                    type="integer",
                    description="Only return runs created before this UNIX timestamp",
                    required=False,
                ),
                ToolParameter(
                    name="limit",
                    type="integer",
                    description="Maximum number of runs to return (max 250)",
                    required=False,
                ),
                ToolParameter(
                    name="offset",
                    type="integer",
                    description="Number of runs to skip, for paging",
                    required=False,
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.get_run",
            description="Gets details for a single test run, including its pass/fail counts.",
            parameters=[
                ToolParameter(
                    name="run_id",
                    type="integer",
                    description="The ID of the test run in TestRail.",
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.get_tests_for_run",
            description="Gets a list of tests for a specific test run from TestRail.",
            parameters=[
                ToolParameter(
                    name="run_id",
                    type="integer",
                    description="The ID of the test run in TestRail.",
                ),
                ToolParameter(
                    name="status_id",
                    type="array",
                    items="integer",
                    description=_STATUS_IDS,
                    required=False,
                ),
            ],
        ),
        # ---- Results ----
        ToolDefinition(
            name="testrail.get_results_for_run",
            description="Gets a list of results for a specific test run from TestRail.",
            parameters=[
                ToolParameter(
                    name="run_id",
                    type="integer",
                    description="The ID of the test run in TestRail.",
                ),
                ToolParameter(
                    name="status_id",
                    type="array",
                    items="integer",
                    description=_STATUS_IDS,
                    required=False,
                ),
                ToolParameter(
                    name="limit",
                    type="integer",
                    description="Maximum number of results to return (max 250)",
                    required=False,
                ),
                ToolParameter(
                    name="offset",
                    type="integer",
                    description="Number of results to skip, for paging",
                    required=False,
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.get_results_for_case",
            description="Gets the result history of one test case within a test run.",
            parameters=[
                ToolParameter(
                    name="run_id",
                    type="integer",
                    description="The ID of the test run in TestRail.",
                ),
                ToolParameter(
                    name="case_id",
                    type="integer",
                    description="The ID of the test case (without the C prefix).",
                ),
                ToolParameter(
                    name="status_id",
                    type="array",
                    items="integer",
                    description=_STATUS_IDS,
                    required=False,
                ),
                ToolParameter(
                    name="limit",
                    type="integer",
                    description="Maximum number of results to return",
                    required=False,
                ),
            ],
        ),
        # ---- Cases ----
        ToolDefinition(
            name="testrail.get_test_case",
            description="Gets details for a specific test case from TestRail.",
            parameters=[
                ToolParameter(
                    name="case_id",
                    type="integer",
                    description="The ID of the test case in TestRail (e.g., 123 for C123).",
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.get_cases",
            description="Gets the test cases of a project, optionally narrowed to a suite or section.",
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="integer",
                    description="The ID of the project in TestRail.",
                ),
                ToolParameter(
                    name="suite_id",
                    type="integer",
                    description="The ID of the test suite (required for multi-suite projects)",
                    required=False,
                ),
                ToolParameter(
                    name="section_id",
                    type="integer",
                    description="Only return cases in this section",
                    required=False,
                ),
                ToolParameter(
                    name="limit",
                    type="integer",
                    description="Maximum number of cases to return (max 250)",
                    required=False,
                ),
                ToolParameter(
                    name="offset",
                    type="integer",
                    description="Number of cases to skip, for paging",
                    required=False,
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.get_suites",
            description="Gets the test suites of a project.",
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="integer",
                    description="The ID of the project in TestRail.",
                ),
            ],
        ),
        # ---- Milestones ----
        ToolDefinition(
            name="testrail.get_milestones_for_project",
            description="Gets a list of milestones for a specific project from TestRail.",
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="integer",
                    description="The ID of the project in TestRail.",
                ),
                ToolParameter(
                    name="is_completed",
                    type="boolean",
                    description="Only return completed (true) or open (false) milestones",
                    required=False,
                ),
                ToolParameter(
                    name="is_started",
                    type="boolean",
                    description="Only return started (true) or upcoming (false) milestones",
                    required=False,
                ),
            ],
        ),
        # ---- Reference data ----
        ToolDefinition(
            name="testrail.get_statuses",
            description="Gets the available test statuses, including custom ones.",
            parameters=[],
        ),
        # ---- Mutations ----
        ToolDefinition(
            name="testrail.add_run",
            description=(
                "Creates a new test run in a project. Returns the new run. "
                "By default the run includes all cases of the suite."
            ),
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="integer",
                    description="The ID of the project the run belongs to.",
                ),
                ToolParameter(
                    name="name",
                    type="string",
                    description="Name of the test run",
                ),
                ToolParameter(
                    name="suite_id",
                    type="integer",
                    description="The ID of the test suite (required for multi-suite projects)",
                    required=False,
                ),
                ToolParameter(
                    name="description",
                    type="string",
                    description="Description of the test run",
                    required=False,
                ),
                ToolParameter(
                    name="milestone_id",
                    type="integer",
                    description="Milestone to link the run to",
                    required=False,
                ),
                ToolParameter(
                    name="include_all",
                    type="boolean",
                    description="Include all cases of the suite (default true)",
                    required=False,
                ),
                ToolParameter(
                    name="case_ids",
                    type="array",
                    items="integer",
                    description="Case IDs for a custom selection (use with include_all=false)",
                    required=False,
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.close_run",
            description="Closes an existing test run and archives its tests and results. Cannot be undone.",
            parameters=[
                ToolParameter(
                    name="run_id",
                    type="integer",
                    description="The ID of the test run to close.",
                ),
            ],
        ),
        ToolDefinition(
            name="testrail.add_result_for_case",
            description="Records a test result for a case in a test run.",
            parameters=[
                ToolParameter(
                    name="run_id",
                    type="integer",
                    description="The ID of the test run.",
                ),
                ToolParameter(
                    name="case_id",
                    type="integer",
                    description="The ID of the test case (without the C prefix).",
                ),
                ToolParameter(
                    name="status_id",
                    type="integer",
                    description="Result status: 1=passed, 2=blocked, 3=untested, 4=retest, 5=failed",
                ),
                ToolParameter(
                    name="comment",
                    type="string",
                    description="Comment or description for the result",
                    required=False,
                ),
                ToolParameter(
                    name="version",
                    type="string",
                    description="Version or build tested against",
                    required=False,
                ),
                ToolParameter(
                    name="elapsed",
                    type="string",
                    description="Time spent, e.g. '30s' or '1m 45s'",
                    required=False,
                ),
                ToolParameter(
                    name="defects",
                    type="string",
                    description="Comma-separated list of defect IDs",
                    required=False,
                ),
            ],
        ),
    ],
)
