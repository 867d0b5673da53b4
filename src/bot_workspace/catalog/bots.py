"""Built-in research bots and their input schemas."""

from functools import lru_cache

from bot_workspace.catalog.registry import ToolCatalog
from bot_workspace.models.tool import (
    Choice,
    FieldDependency,
    FieldKind,
    FieldSpec,
    ToolDescriptor,
)

ATTACHMENT_FIELD = "pdf_file"

_PDF = FieldSpec(ATTACHMENT_FIELD, FieldKind.FILE, label="Upload PDF Paper")
_PDF_REQUIRED = FieldSpec(ATTACHMENT_FIELD, FieldKind.FILE, label="Upload PDF Paper", required=True)

_PREVALENCE = FieldDependency("mode", "prevalence")
_MEAN = FieldDependency("mode", "mean")
_REGRESSION = FieldDependency("mode", "regression")


BOTS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        id="citation",
        name="Citation Formatter",
        category="Utility",
        version="v1.0",
        description=(
            "Instantly convert BibTeX citations into any academic style "
            "(APA, MLA, IEEE, etc.) with perfect accuracy."
        ),
        features=("BibTeX Input", "Multi-style Support", "Instant Format", "Copy to Clipboard"),
        fields=(
            FieldSpec(
                "bibtex", FieldKind.LONG_TEXT, label="BibTeX Citation",
                required=True, placeholder="@article{...}",
            ),
            FieldSpec(
                "style", FieldKind.CHOICE, label="Style",
                choices=(
                    Choice("APA", "APA"),
                    Choice("MLA", "MLA"),
                    Choice("IEEE", "IEEE"),
                    Choice("Chicago", "Chicago"),
                    Choice("Harvard", "Harvard"),
                ),
            ),
        ),
    ),
    ToolDescriptor(
        id="idea",
        name="Idea Generator",
        category="Creativity",
        version="v2.1",
        description=(
            "Overcome writer's block by generating novel research topics and "
            "hypotheses tailored to your specific field."
        ),
        features=("Field Specific", "Novelty Settings", "Hypothesis Gen", "Venue Targeting"),
        fields=(
            FieldSpec("field", FieldKind.TEXT, label="Research Field", required=True),
            FieldSpec("topic", FieldKind.TEXT, label="Topic (Optional)"),
            FieldSpec(
                "novelty", FieldKind.CHOICE, label="Novelty",
                choices=(
                    Choice("Low", "Incremental"),
                    Choice("Medium", "Moderate"),
                    Choice("High", "Disruptive"),
                ),
                default="Medium",
            ),
        ),
    ),
    ToolDescriptor(
        id="conference",
        name="Conference Profile Bot",
        category="Assistant",
        version="v2.0",
        description=(
            "Your personal guide to conference details. Ask questions about "
            "schedules, speakers, and paper topics."
        ),
        features=("Q&A Interface", "Schedule Search", "Speaker Info", "Context Aware"),
        accepts_attachment=True,
        fields=(
            _PDF,
            FieldSpec(
                "question", FieldKind.LONG_TEXT, label="Question",
                required=True, placeholder="Ask about the conference...",
            ),
        ),
    ),
    ToolDescriptor(
        id="reviewer",
        name="Paper Reviewer",
        category="Review",
        version="v1.5",
        description=(
            "Get a structured, critical review of your research paper before "
            "submission. Identifies strengths and weaknesses."
        ),
        features=("PDF Upload", "Critical Analysis", "Weakness Detection", "Improvement Tips"),
        accepts_attachment=True,
        fields=(
            _PDF_REQUIRED,
            FieldSpec(
                "question", FieldKind.LONG_TEXT, label="Focus",
                placeholder="Specific focus...",
            ),
        ),
    ),
    ToolDescriptor(
        id="analyst",
        name="Paper Analyst",
        category="Analysis",
        version="v3.0",
        description=(
            "Deep dive into any research paper. Extract key insights, "
            "methodologies, and contributions automatically."
        ),
        features=("Auto-Summary", "Method Extraction", "Data Analysis", "Key Findings"),
        accepts_attachment=True,
        fields=(_PDF_REQUIRED,),
    ),
    ToolDescriptor(
        id="writer",
        name="Paper Writer Agent",
        category="Writing",
        version="v2.2",
        description=(
            "An AI co-author that helps draft sections of your paper, ensuring "
            "academic tone and clarity."
        ),
        features=("Draft Generation", "Tone Adjustment", "Section Expansion", "Academic Style"),
        fields=(
            FieldSpec(
                "input_text", FieldKind.LONG_TEXT, label="Instructions",
                required=True, placeholder="What should I write?",
            ),
        ),
    ),
    ToolDescriptor(
        id="questionaire",
        name="Questionnaire Designer",
        category="Design",
        version="v1.0",
        description=(
            "Design robust research questionnaires tailored to your study "
            "population, culture, and specific variables."
        ),
        features=(
            "Variable Integration", "Cultural Adaptation",
            "Scale Selection", "Demographic Targeting",
        ),
        fields=(
            FieldSpec(
                "variables", FieldKind.TEXT, label="Variables",
                required=True, placeholder="e.g. Anxiety, Sleep Quality",
            ),
            FieldSpec(
                "population", FieldKind.TEXT, label="Population",
                placeholder="e.g. University Students",
            ),
            FieldSpec(
                "culture", FieldKind.TEXT, label="Culture/Region",
                placeholder="e.g. Bangladesh",
            ),
            FieldSpec(
                "scale", FieldKind.CHOICE, label="Scale Type",
                choices=(
                    Choice("5", "5-Point Likert"),
                    Choice("7", "7-Point Likert"),
                    Choice("binary", "True/False"),
                ),
            ),
            FieldSpec(
                "language", FieldKind.CHOICE, label="Language",
                choices=(Choice("English", "English"), Choice("Bangla", "Bangla")),
            ),
        ),
    ),
    ToolDescriptor(
        id="sample_size",
        name="Sample Size Calculator",
        category="Planning",
        version="v1.0",
        description=(
            "Calculate the ideal sample size for your study based on prevalence, "
            "mean estimation, or regression models."
        ),
        features=(
            "Prevalence Mode", "Mean Estimation",
            "Regression Rules", "Population Adjustment",
        ),
        fields=(
            FieldSpec(
                "mode", FieldKind.CHOICE, label="Calculation Mode",
                choices=(
                    Choice("prevalence", "Prevalence Study (Survey)"),
                    Choice("mean", "Mean Estimation"),
                    Choice("regression", "Regression Analysis"),
                ),
            ),
            FieldSpec(
                "p", FieldKind.NUMBER, label="Prevalence (p)",
                required=True, default=0.5, depends_on=_PREVALENCE,
            ),
            FieldSpec(
                "d", FieldKind.NUMBER, label="Precision (d)",
                required=True, default=0.05, depends_on=_PREVALENCE,
            ),
            FieldSpec(
                "population", FieldKind.NUMBER, label="Population Size (Optional)",
                placeholder="Leave empty for infinite", depends_on=_PREVALENCE,
            ),
            FieldSpec(
                "std_dev", FieldKind.NUMBER, label="Std Dev (σ)",
                required=True, default=1.0, depends_on=_MEAN,
            ),
            FieldSpec(
                "d", FieldKind.NUMBER, label="Precision (d)",
                required=True, default=0.5, depends_on=_MEAN,
            ),
            FieldSpec(
                "predictors", FieldKind.NUMBER, label="Number of Predictors",
                required=True, default=3, depends_on=_REGRESSION,
            ),
        ),
    ),
    ToolDescriptor(
        id="statistical",
        name="Statistical Test Selector",
        category="Analysis",
        version="v1.0",
        description=(
            "Unsure which test to run? Input your variable types and study design "
            "to get the correct statistical test recommendation."
        ),
        features=(
            "Variable Type Logic", "Group Analysis",
            "Assumption Checks", "Hypothesis Matching",
        ),
        fields=(
            FieldSpec(
                "iv_type", FieldKind.CHOICE, label="IV Type",
                choices=(Choice("categorical", "Categorical"), Choice("continuous", "Continuous")),
            ),
            FieldSpec(
                "dv_type", FieldKind.CHOICE, label="DV Type",
                choices=(Choice("continuous", "Continuous"), Choice("categorical", "Categorical")),
            ),
            FieldSpec(
                "groups", FieldKind.NUMBER, label="Number of Groups (IV Levels)",
                required=True, placeholder="e.g. 2, 3...",
            ),
        ),
    ),
)


@lru_cache
def default_catalog() -> ToolCatalog:
    """Catalog holding the built-in bots, built once per process."""
    return ToolCatalog(list(BOTS))
