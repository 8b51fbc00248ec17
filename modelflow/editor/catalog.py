"""Toolbar snippets, example diagrams and default buffers for both editors."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from modelflow.editor.directives import DiagramKind, profile_for


@dataclass(frozen=True)
class ToolItem:
    label: str
    mermaid: str
    description: str = ""


@dataclass(frozen=True)
class ToolCategory:
    label: str
    items: List[ToolItem] = field(default_factory=list)


@dataclass(frozen=True)
class ExampleDiagram:
    label: str
    content: str


DEFAULT_ERD_CONTENT = """erDiagram
    USER {
        int id PK "User ID"
        string username "Username"
        string email "Email address"
        datetime createdAt "Timestamp of creation"
    }
    PROFILE {
        int id PK "Profile ID"
        string bio "User biography"
        int userId FK "Foreign key to USER table"
    }
    POST {
        int id PK "Post ID"
        string title "Post title"
        text content "Post content"
        int authorId FK "Foreign key to USER table (author)"
        datetime publishedAt "Timestamp of publication"
    }
    USER ||--o{ PROFILE : "has one"
    USER ||--o{ POST : "writes"
""".rstrip("\n")

DEFAULT_DFD_CONTENT = """graph TD
    A["User Submits Data"] --> B{Process Data};
    B --> C["Display Results"];
    D(External System) --> A;"""


def _theme_items(noun: str) -> List[ToolItem]:
    themes = [
        ("Default", "default", "Sets diagram theme to Mermaid's default."),
        ("Neutral", "neutral", "Sets diagram theme to neutral."),
        ("Forest", "forest", "Sets diagram theme to forest (green tones)."),
        ("Dark", "dark", "Sets diagram theme to dark."),
        ("Base", "base", "Sets diagram theme to base (for CSS variable customization)."),
    ]
    return [
        ToolItem(
            label=f"Theme: {label}",
            mermaid="%%{init: {'theme': '" + name + "'}}%%",
            description=f"{desc} Placed at the top of the {noun}.",
        )
        for label, name, desc in themes
    ]


ERD_TOOL_CATEGORIES: List[ToolCategory] = [
    ToolCategory(
        "Entity Tools",
        [
            ToolItem(
                "Simple Entity",
                'NEW_ENTITY {\n    string attributeName "Description"\n    int anotherAttribute\n}',
                "Adds a basic entity with a couple of attributes.",
            ),
            ToolItem(
                "Standard Entity",
                'STANDARD_ENTITY {\n    int id PK "Primary Key"\n    string name "Entity Name"\n'
                '    text description "Optional description"\n    datetime created_at "Timestamp of creation"\n'
                '    datetime updated_at "Timestamp of last update"\n}',
                "Adds an entity with ID, name, description, and timestamps.",
            ),
            ToolItem(
                "Entity with Composite PK",
                'COMPOSITE_KEY_ENTITY {\n    int part1_id PK "Part 1 of PK"\n    int part2_id PK "Part 2 of PK"\n    string data\n}',
                "Adds an entity with a composite Primary Key.",
            ),
        ],
    ),
    ToolCategory(
        "Attribute Tools",
        [
            ToolItem("String Attribute", '    string newAttribute "Comment"', "Adds a string type attribute."),
            ToolItem("Integer Attribute", '    int count "Comment"', "Adds an integer type attribute."),
            ToolItem("Text Attribute", '    text details "Long text details"', "Adds a text (long string) attribute."),
            ToolItem("Boolean Attribute", '    boolean isActive "Activity status"', "Adds a boolean type attribute."),
            ToolItem("Date Attribute", '    date eventDate "Date of event"', "Adds a date type attribute."),
            ToolItem("DateTime Attribute", '    datetime timestampValue "Timestamp with time"', "Adds a datetime attribute."),
            ToolItem("Decimal Attribute", '    decimal amount "Decimal value e.g., 123.45"', "Conceptual decimal type."),
            ToolItem("Varchar(N) Attribute", '    varchar_100 short_string "String with max length 100"', "Conceptual varchar."),
            ToolItem("Primary Key (PK)", '    int id PK "Primary Key identifier"', "Marks an attribute as a Primary Key."),
            ToolItem("Foreign Key (FK)", '    int entity_id FK "Foreign Key reference"', "Marks an attribute as a Foreign Key."),
            ToolItem(
                "Unique Constraint (UQ)",
                '    string email UQ "Unique email address (conceptual comment)"',
                "Conceptual unique constraint.",
            ),
            ToolItem(
                "Not Null Constraint (NN)",
                '    string mandatory_field NN "This field cannot be null (conceptual comment)"',
                "Conceptual not null constraint.",
            ),
            ToolItem(
                "Attribute with Default",
                '    string status DEFAULT "pending" "Default value is pending (conceptual comment)"',
                "Conceptual attribute with a default value.",
            ),
        ],
    ),
    ToolCategory(
        "Relationship Tools",
        [
            ToolItem("One-to-Exactly-One (||--||)", 'ENTITY1 ||--|| ENTITY2 : "label"', "Exactly one to exactly one."),
            ToolItem("One-to-Zero-or-One (|o--o|)", 'ENTITY1 |o--o| ENTITY2 : "label"', "Zero or one to zero or one."),
            ToolItem("One-to-Many (||--o{)", 'ENTITY1 ||--o{ ENTITY2 : "label"', "Exactly one to zero or more."),
            ToolItem(
                "One-to-One-or-More (||--|{)",
                'ENTITY1 ||--|{ ENTITY2 : "label (identifying)"',
                "Exactly one to one or more (often identifying).",
            ),
            ToolItem("Zero-or-One-to-Many (|o--o{)", 'ENTITY1 |o--o{ ENTITY2 : "label"', "Zero or one to zero or more."),
            ToolItem(
                "Zero-or-One-to-One-or-More (|o--|{)",
                'ENTITY1 |o--|{ ENTITY2 : "label"',
                "Zero or one to one or more.",
            ),
            ToolItem("Many-to-Many (}o--o{)", 'ENTITY1 }o--o{ ENTITY2 : "label"', "Zero or more to zero or more."),
            ToolItem(
                "Self-Referencing (Recursive)",
                'EMPLOYEE }o--o{ EMPLOYEE : "manages / reports_to"',
                "Entity relates to itself.",
            ),
        ],
    ),
    ToolCategory(
        "Diagram Directives",
        [ToolItem("Comment", "    %% This is a comment", "Adds a comment to your Mermaid diagram.")]
        + _theme_items("ER diagram")
        + [
            ToolItem("Layout: Top-Down (TD)", "erDiagram TD", "Replaces the erDiagram header with a top-down layout."),
            ToolItem("Layout: Left-to-Right (LR)", "erDiagram LR", "Replaces the erDiagram header with a left-to-right layout."),
            ToolItem(
                "Advanced Config Block",
                '%% @config\n{\n  "er": {\n    "fontSize": 12,\n    "entityColor": "#f9f9f9",\n'
                '    "attributeTypeColor": "#888"\n  }\n}\n%%',
                "Adds a JSON configuration block for advanced styling.",
            ),
        ],
    ),
]

DFD_TOOL_CATEGORIES: List[ToolCategory] = [
    ToolCategory(
        "Nodes",
        [
            ToolItem("Process (Rectangle)", '    ID["Process Description"]', "Adds a process node."),
            ToolItem("External Entity (Rounded)", "    ID(External Entity)", "Adds an external entity node."),
            ToolItem("Data Store (Open Rectangle)", "    ID([Data Store Name])", "Adds a data store node."),
            ToolItem("Data Store (Cylinder)", "    ID[(Data Store Name)]", "Adds a cylinder data store node."),
        ],
    ),
    ToolCategory(
        "Data Flows",
        [
            ToolItem("Simple Flow (A --> B)", "    A --> B", "Adds a data flow from node A to node B."),
            ToolItem("Flow with Label (A --Label--> B)", '    A --"Data Label"--> B', "Adds a labelled data flow."),
            ToolItem("Flow with Label (A -->|Label| B)", '    A -->|"Data Label"| B', "Alternative labelled flow syntax."),
            ToolItem("Dotted Flow (A-.-> B)", "    A-.->B", "Adds a dotted data flow."),
            ToolItem("Dotted Flow with Label", '    A-. "Control Signal" .-> B', "Adds a labelled dotted data flow."),
        ],
    ),
    ToolCategory(
        "Subgraphs (Grouping)",
        [
            ToolItem("Simple Subgraph", 'subgraph "Subgraph Title"\n    S1_A --> S1_B\nend', "Groups nodes in a titled subgraph."),
            ToolItem(
                "Subgraph with Direction",
                'subgraph "Titled Group" TD\n    G_A["Node A"] --> G_B["Node B"]\nend',
                "A subgraph with its own layout direction.",
            ),
        ],
    ),
    ToolCategory(
        "Diagram Directives",
        [
            ToolItem("Comment", "    %% This is a comment", "Adds a comment to your DFD."),
            ToolItem("Layout: Top-Down (TD)", "graph TD", "Replaces the graph header with a top-down layout."),
            ToolItem("Layout: Left-to-Right (LR)", "graph LR", "Replaces the graph header with a left-to-right layout."),
        ]
        + _theme_items("DFD"),
    ),
]

ERD_EXAMPLES: List[ExampleDiagram] = [
    ExampleDiagram(
        "Simple User-Profile (ERD)",
        'erDiagram\n    USER {\n        int id PK\n        string name\n    }\n'
        '    PROFILE {\n        int user_id FK\n        string bio\n    }\n    USER ||--o{ PROFILE : "has"',
    ),
    ExampleDiagram(
        "Blogging Platform (ERD)",
        """erDiagram
    USER ||--o{ POST : "writes"
    USER ||--o{ COMMENT : "authors"
    POST ||--o{ COMMENT : "has many"
    POST ||--|{ POST_TAG : "tagged_in"
    TAG  ||--|{ POST_TAG : "references_tag"

    USER {
        int id PK "User ID"
        string username "Username (Unique UQ)"
        string email "Email (Unique UQ)"
        string password_hash "Hashed Password"
        datetime registered_at "Registration Date"
    }

    POST {
        int id PK "Post ID"
        int author_id FK "Author (User ID)"
        string title "Post Title"
        text content "Post Content"
        datetime created_at "Creation Timestamp"
        varchar_50 status "e.g., draft, published, archived"
    }

    COMMENT {
        int id PK "Comment ID"
        int post_id FK "Associated Post"
        int author_id FK "Author (User ID)"
        text content "Comment Text"
        datetime created_at "Creation Timestamp"
    }

    TAG {
        int id PK "Tag ID"
        string name "Tag Name (Unique UQ)"
    }

    POST_TAG {
        int post_id PK "Links to Post"
        int tag_id PK "Links to Tag"
    }""",
    ),
    ExampleDiagram(
        "Task Management System (ERD)",
        """erDiagram
    PROJECT ||--o{ TASK : "contains"
    USER ||--o{ TASK : "assigned_to (optional)"
    TASK ||--o{ COMMENT : "has"

    USER {
        int id PK
        string name
        string email UK
    }

    PROJECT {
        int id PK
        string name
        date start_date
        string status
    }

    TASK {
        int id PK
        int project_id FK
        int assigned_user_id FK
        string title
        string priority
        date due_date
    }

    COMMENT {
        int id PK
        int task_id FK
        int user_id FK
        text content
    }""",
    ),
]

DFD_EXAMPLES: List[ExampleDiagram] = [
    ExampleDiagram(
        "Simple Order Process",
        """graph TD
    Customer -- Order --> A{Process Order};
    A -- Validated Order --> B[Dispatch Goods];
    B -- Shipment Details --> Customer;
    A -- Invoice Data --> C[Generate Invoice];
    C -- Invoice --> Customer;
    StockDb([Stock Database]) --> A;
    A --> StockDb;""",
    ),
    ExampleDiagram(
        "User Authentication Flow",
        """graph LR
    User(User) -- Credentials --> AppUI[Application UI];
    AppUI -- Login Request --> AuthSvc{Authentication Service};
    AuthSvc -- Validate --> UserDB[(User Database)];
    UserDB -- User Record/Error --> AuthSvc;
    AuthSvc -- Auth Token/Error --> AppUI;
    AppUI -- Access --> ProtectedPage[Protected Resource];""",
    ),
    ExampleDiagram(
        "Website Data Flow",
        """graph TD
    User(User) -- HTTP Request --> WebServer[Web Server];
    WebServer -- Serve Static Content --> User;
    WebServer -- API Request --> APIService{API Service};
    APIService -- Query/Update --> Database[(Primary DB)];
    Database -- Data --> APIService;
    APIService -- Response --> WebServer;
    WebServer -- Dynamic Content --> User;""",
    ),
]

_TOOLS: Dict[DiagramKind, List[ToolCategory]] = {
    DiagramKind.ER: ERD_TOOL_CATEGORIES,
    DiagramKind.DFD: DFD_TOOL_CATEGORIES,
}
_EXAMPLES: Dict[DiagramKind, List[ExampleDiagram]] = {
    DiagramKind.ER: ERD_EXAMPLES,
    DiagramKind.DFD: DFD_EXAMPLES,
}
_DEFAULTS: Dict[DiagramKind, str] = {
    DiagramKind.ER: DEFAULT_ERD_CONTENT,
    DiagramKind.DFD: DEFAULT_DFD_CONTENT,
}


def _kind(kind: DiagramKind | str) -> DiagramKind:
    try:
        return DiagramKind(kind)
    except ValueError:
        raise ValueError(f"Unknown diagram kind: {kind}") from None


def tool_categories(kind: DiagramKind | str) -> List[ToolCategory]:
    return _TOOLS.get(_kind(kind), [])


def examples(kind: DiagramKind | str) -> List[ExampleDiagram]:
    return _EXAMPLES.get(_kind(kind), [])


def default_content(kind: DiagramKind | str) -> Optional[str]:
    """Starter buffer for a new tab; untitled AI tabs start without content."""
    return _DEFAULTS.get(_kind(kind))


def minimal_content(kind: DiagramKind | str) -> str:
    return profile_for(kind).minimal_content


def find_example(kind: DiagramKind | str, label: str) -> ExampleDiagram:
    for example in examples(kind):
        if example.label == label:
            return example
    raise LookupError(f"Unknown example for {_kind(kind).value}: {label}")


def find_tool(kind: DiagramKind | str, label: str) -> ToolItem:
    for category in tool_categories(kind):
        for item in category.items:
            if item.label == label:
                return item
    raise LookupError(f"Unknown tool for {_kind(kind).value}: {label}")
