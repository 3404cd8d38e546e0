"""Built-in node kinds shipped with the editor palette."""

from flowcheck.schema.models import FieldSpec, KindCategory, NodeKindSchema, ValueKind

MAIN_OUTPUT = ("output-0",)
MAIN_INPUT = ("input-0",)

# Kinds whose execution is billed per call; counted by the complexity advisory
LLM_KINDS = ("openai", "gemini", "ollama")


def _credential() -> FieldSpec:
    return FieldSpec(
        id="credential", label="Credential", value_kind=ValueKind.CREDENTIAL, required=True
    )


def _trigger(kind: str, display_name: str, *fields: FieldSpec) -> NodeKindSchema:
    return NodeKindSchema(
        kind=kind,
        display_name=display_name,
        category=KindCategory.TRIGGER,
        fields=list(fields),
        inputs=(),
        outputs=MAIN_OUTPUT,
    )


def _node(
    kind: str,
    display_name: str,
    category: KindCategory,
    *fields: FieldSpec,
    inputs: tuple[str, ...] = MAIN_INPUT,
    outputs: tuple[str, ...] = MAIN_OUTPUT,
) -> NodeKindSchema:
    return NodeKindSchema(
        kind=kind,
        display_name=display_name,
        category=category,
        fields=list(fields),
        inputs=inputs,
        outputs=outputs,
    )


def _llm(kind: str, display_name: str, *extra: FieldSpec) -> NodeKindSchema:
    return _node(
        kind,
        display_name,
        KindCategory.LLM,
        FieldSpec(id="model", label="Model", value_kind=ValueKind.SELECT),
        FieldSpec(id="prompt", label="Prompt", value_kind=ValueKind.TEXTAREA, required=True),
        FieldSpec(
            id="temperature",
            label="Temperature",
            value_kind=ValueKind.NUMBER,
            minimum=0,
            maximum=2,
            description="0-2, higher = more creative",
        ),
        FieldSpec(id="max_tokens", label="Max Tokens", value_kind=ValueKind.NUMBER),
        *extra,
    )


BUILTIN_SCHEMAS: list[NodeKindSchema] = [
    # ============= TRIGGERS =============
    _trigger("manual_trigger", "Manual Trigger", FieldSpec(id="name", label="Trigger Name")),
    _trigger(
        "webhook_trigger",
        "Webhook",
        FieldSpec(id="http_method", label="HTTP Method", value_kind=ValueKind.SELECT),
        FieldSpec(id="path", label="Path"),
    ),
    _trigger(
        "schedule_trigger",
        "Schedule",
        FieldSpec(
            id="cron_expression", label="Cron Expression", value_kind=ValueKind.CRON, required=True
        ),
        FieldSpec(id="timezone", label="Timezone"),
    ),
    _trigger("email_trigger", "Email Received", _credential()),
    _trigger("form_trigger", "Form Submission", FieldSpec(id="form_title", label="Form Title")),
    _trigger("slack_trigger", "Slack Event", _credential()),
    _trigger(
        "google_sheets_trigger",
        "Google Sheets Change",
        _credential(),
        FieldSpec(id="spreadsheet_id", label="Spreadsheet ID", required=True),
    ),
    _trigger("github_trigger", "GitHub Event", _credential()),
    _trigger("discord_trigger", "Discord Message", _credential()),
    _trigger("telegram_trigger", "Telegram Message", _credential()),
    _trigger(
        "rss_feed_trigger",
        "RSS Feed",
        FieldSpec(id="feed_url", label="Feed URL", value_kind=ValueKind.URL, required=True),
    ),
    # ============= CONTROL FLOW =============
    _node(
        "if",
        "IF",
        KindCategory.CONTROL_FLOW,
        FieldSpec(id="condition", label="Condition", value_kind=ValueKind.CODE),
        outputs=("true", "false"),
    ),
    _node(
        "switch",
        "Switch",
        KindCategory.CONTROL_FLOW,
        FieldSpec(id="data_property", label="Property to Route On"),
        FieldSpec(id="cases", label="Cases", value_kind=ValueKind.JSON),
        outputs=("case", "default"),
    ),
    _node(
        "loop",
        "Loop Over Items",
        KindCategory.CONTROL_FLOW,
        FieldSpec(id="batch_size", label="Batch Size", value_kind=ValueKind.NUMBER),
        outputs=("loop", "done"),
    ),
    # ============= TRANSFORMS =============
    _node(
        "http_request",
        "HTTP Request",
        KindCategory.TRANSFORM,
        FieldSpec(id="method", label="Method", value_kind=ValueKind.SELECT),
        FieldSpec(id="url", label="URL", value_kind=ValueKind.URL, required=True),
        FieldSpec(id="headers", label="Headers", value_kind=ValueKind.JSON),
        FieldSpec(id="body", label="Body", value_kind=ValueKind.JSON),
        FieldSpec(id="timeout_seconds", label="Timeout (s)", value_kind=ValueKind.NUMBER),
    ),
    _node(
        "code",
        "Code",
        KindCategory.TRANSFORM,
        FieldSpec(id="language", label="Language", value_kind=ValueKind.SELECT),
        FieldSpec(id="code", label="Code", value_kind=ValueKind.CODE, required=True),
    ),
    _node(
        "set",
        "Set Fields",
        KindCategory.TRANSFORM,
        FieldSpec(id="values", label="Values", value_kind=ValueKind.JSON),
        FieldSpec(id="keep_only_set", label="Keep Only Set", value_kind=ValueKind.BOOLEAN),
    ),
    _node(
        "merge",
        "Merge",
        KindCategory.TRANSFORM,
        FieldSpec(id="mode", label="Mode", value_kind=ValueKind.SELECT),
        inputs=("input-0", "input-1"),
    ),
    _node(
        "delay",
        "Wait",
        KindCategory.TRANSFORM,
        FieldSpec(id="seconds", label="Seconds", value_kind=ValueKind.NUMBER, required=True),
    ),
    # ============= LLM =============
    _llm("openai", "OpenAI", _credential()),
    _llm("gemini", "Gemini", _credential()),
    _llm(
        "ollama",
        "Ollama",
        FieldSpec(id="base_url", label="Base URL", value_kind=ValueKind.URL),
    ),
    # ============= INTEGRATIONS =============
    _node(
        "slack",
        "Slack",
        KindCategory.INTEGRATION,
        _credential(),
        FieldSpec(id="channel", label="Channel", required=True),
        FieldSpec(id="text", label="Message", value_kind=ValueKind.TEXTAREA),
    ),
    _node(
        "gmail",
        "Gmail",
        KindCategory.INTEGRATION,
        _credential(),
        FieldSpec(id="to", label="To", required=True),
        FieldSpec(id="subject", label="Subject"),
        FieldSpec(id="body", label="Body", value_kind=ValueKind.TEXTAREA),
    ),
    _node(
        "google_sheets",
        "Google Sheets",
        KindCategory.INTEGRATION,
        _credential(),
        FieldSpec(id="spreadsheet_id", label="Spreadsheet ID", required=True),
        FieldSpec(id="sheet_name", label="Sheet Name"),
        FieldSpec(id="range", label="Range"),
    ),
    # ============= SUB-PIPELINES =============
    _node(
        "subworkflow",
        "Execute Workflow",
        KindCategory.SUBWORKFLOW,
        FieldSpec(id="workflow_id", label="Workflow", required=True),
        FieldSpec(id="input_mapping", label="Input Mapping", value_kind=ValueKind.JSON),
        FieldSpec(id="output_mapping", label="Output Mapping", value_kind=ValueKind.JSON),
    ),
]
