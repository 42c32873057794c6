"""Analysis instruction sent to the engine with every audit.

The instruction is fixed apart from the repository name and scan date: it
states the redaction rules, the closed safeguard taxonomy, the output schema
and the scoring formula.
"""

import json
from datetime import datetime, timezone

SCANNER_ID = "scanara-ai-v1"

SYSTEM_ROLE = (
    "You are a HIPAA compliance expert. Analyze code and return structured "
    "JSON with compliance findings."
)

# Weighted contribution of each subscore to overall_score (sums to 1.0)
SCORE_WEIGHTS: dict[str, float] = {
    "technical_safeguards_score": 0.45,
    "administrative_safeguards_score": 0.30,
    "physical_safeguards_score": 0.10,
    "audit_coverage_score": 0.10,
    "devops_hygiene_score": 0.05,
}

# category -> {component name: [standards the component must cover]}
SAFEGUARD_TAXONOMY: dict[str, dict[str, list[str]]] = {
    "administrative_safeguards": {
        "Security Management Process": [
            "Risk analysis", "Risk management", "Sanction policy",
            "Information system activity review",
        ],
        "Assigned Security Responsibility": [
            "Named security official responsible for policies and procedures",
        ],
        "Workforce Security": [
            "Authorization and/or supervision", "Workforce clearance procedure",
            "Termination procedures",
        ],
        "Information Access Management": [
            "Isolating health care clearinghouse functions",
            "Access authorization", "Access establishment and modification",
        ],
        "Security Awareness and Training": [
            "Security reminders", "Protection from malicious software",
            "Log-in monitoring", "Password management",
        ],
        "Security Incident Procedures": ["Response and reporting"],
        "Contingency Plan": [
            "Data backup plan", "Disaster recovery plan",
            "Emergency mode operation plan", "Testing and revision procedures",
            "Applications and data criticality analysis",
        ],
        "Evaluation": ["Periodic technical and nontechnical evaluation"],
        "Business Associate Contracts": ["Written contract or other arrangement"],
    },
    "technical_safeguards": {
        "Access Control": [
            "Unique user identification", "Emergency access procedure",
            "Automatic logoff", "Encryption and decryption",
        ],
        "Audit Controls": ["Mechanisms that record and examine system activity"],
        "Integrity": ["Mechanism to authenticate electronic PHI"],
        "Person or Entity Authentication": ["Verify identity of anyone seeking access"],
        "Transmission Security": ["Integrity controls", "Encryption in transit"],
    },
    "physical_safeguards": {
        "Facility Access Controls": [
            "Contingency operations", "Facility security plan",
            "Access control and validation procedures", "Maintenance records",
        ],
        "Workstation Use": ["Workstation function and surroundings policy"],
        "Workstation Security": ["Restrict workstation access to authorized users"],
        "Device and Media Controls": [
            "Disposal", "Media re-use", "Accountability", "Data backup and storage",
        ],
    },
    "data_handling": {
        "PHI in Logs": ["No PHI written by logging or print statements"],
        "PHI in URLs": ["No PHI in paths or query strings"],
        "Input Sanitization": ["XSS and injection prevention"],
        "Secrets Management": ["No hardcoded secrets or committed .env files"],
        "Dependency Security": ["Direct dependencies free of known issues"],
    },
}

_RULES = """\
You must not modify files and must not reproduce real Protected Health
Information (PHI). Any suspected PHI in the code or sample data is sensitive:
replace it with the token "[REDACTED_PHI]" in your output and never echo SSNs,
phone numbers, names or medical records. Work only from the files provided.
Vendors or services you cannot verify are reported as "requires manual
verification" together with what to verify and where.

SCOPE: source files, infrastructure-as-code, Dockerfiles, CI/CD pipelines,
configuration files, package manifests, Kubernetes manifests and security
documentation. Ignore dependency caches, vendored code, build artifacts and
version-control metadata. Do not decrypt secrets or contact external systems.

CHECKS: encryption at rest and in transit (TLS, HSTS, secure cookies), authentication
(password hashing, MFA for privileged roles, RBAC), hardcoded secrets, logging
that may carry PHI and its redaction, access audit logging (user, time, action,
resource), business associate agreements for every vendor, backups and
retention, CI/CD hygiene, vulnerable dependencies, production data in tests,
network isolation and public storage, tamper-resistant logs, and security
policy documentation."""


def _render_taxonomy() -> str:
    lines = []
    for category, components in SAFEGUARD_TAXONOMY.items():
        lines.append(f"- {category}:")
        for component, standards in components.items():
            lines.append(f"    * {component}: {'; '.join(standards)}")
    return "\n".join(lines)


def _render_formula() -> str:
    terms = " + ".join(f"{weight:.2f}*{name}" for name, weight in SCORE_WEIGHTS.items())
    return (
        f"overall_score = {terms}. Every subscore is 0-100; round every score "
        "to one decimal place."
    )


def output_schema(repo_name: str, scan_date: str) -> dict:
    finding = {
        "id": "F-0001",
        "category": "encryption_at_rest",
        "severity": "critical|high|medium|low",
        "description": "",
        "evidence": [{"file": "", "line_start": 0, "line_end": 0, "snippet": ""}],
        "recommended_fix": {
            "type": "code|infra|process",
            "patch_example": "",
            "commands": [""],
            "estimated_hours": 0.0,
        },
    }
    component = {
        "name": "",
        "status": "compliant|partial|non_compliant|not_found",
        "description": "",
        "evidence": "",
        "remediation": "",
        "files": [""],
    }
    return {
        "metadata": {"repo": repo_name, "scan_date": scan_date, "scanned_by": SCANNER_ID},
        "scores": {"overall_score": 0.0, **{name: 0.0 for name in SCORE_WEIGHTS},
                   "encryption_coverage_percent": 0.0},
        "summary": {
            "top_issues_count": 0, "critical": 0, "high": 0, "medium": 0, "low": 0,
            "top_3_findings": [{
                "title": "", "severity": "", "description": "",
                "file_paths": [""], "line_refs": [""], "remediation": "",
            }],
        },
        "detailed_findings": [finding],
        "metrics": {
            "mfa_coverage_percent": 0.0, "rbac_coverage_percent": 0.0,
            "secrets_in_code_count": 0, "baas_coverage_percent": 0.0,
            "log_redaction_coverage_percent": 0.0, "immutable_logs_enabled": False,
            "public_bucket_count": 0, "tls_enforced": True,
            "test_data_with_real_phi_count": 0, "ci_secrets_exposed_count": 0,
            "dependency_vulnerabilities_count": 0,
        },
        "remediation_plan": [{
            "id": "R-0001", "title": "", "priority": "critical|high|medium|low",
            "steps": [""], "files_to_change": [""], "estimated_hours": 0.0,
        }],
        "actions_required": {
            "manual_verification": [{"issue_id": "F-0001", "action": "", "how_to_verify": ""}],
        },
        "component_analysis": {
            category: {
                "status": "compliant|partial|non_compliant",
                "score": 0.0,
                "components": [component],
            }
            for category in SAFEGUARD_TAXONOMY
        },
    }


def build_analysis_prompt(repo_name: str = "unknown", scan_date: str | None = None) -> str:
    scan_date = scan_date or datetime.now(timezone.utc).isoformat()
    schema = json.dumps(output_schema(repo_name, scan_date), indent=2)
    return (
        "You are an automated HIPAA Compliance Auditor for codebases. Produce a "
        "structured, evidence-backed HIPAA readiness report for the repository "
        "provided in the user message.\n\n"
        f"{_RULES}\n\n"
        "COMPONENT ANALYSIS: give every component below its own entry in "
        "component_analysis with a status, description, evidence, remediation "
        "and the affected files:\n"
        f"{_render_taxonomy()}\n\n"
        f"SCORING: {_render_formula()}\n\n"
        "Every finding cites file paths and line numbers. Return ONLY valid JSON "
        f"matching this schema:\n{schema}"
    )


def build_user_message(document: str) -> str:
    return f"Codebase to analyze:\n\n{document}"
