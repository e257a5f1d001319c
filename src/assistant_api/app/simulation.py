"""Canned responses for simulation mode (no API key configured)."""

from __future__ import annotations

from datetime import datetime

LEAD_ANALYSIS_REPORT = """Lead Analysis Report:

**Summary**
- Total leads: 150
- Qualified leads: 45 (30%)
- Hot prospects: 12 (8%)

**Top Performing Sources**
1. LinkedIn (35% conversion)
2. Website referrals (28% conversion)
3. Email campaigns (22% conversion)

**Recommendations**
- Focus on LinkedIn lead nurturing
- Optimize website conversion funnel
- Implement lead scoring system

**Next Steps**
- Schedule follow-up calls for hot prospects
- Create targeted content for qualified leads
- Review and update lead qualification criteria"""

CALL_SUMMARY_REPORT = """Call Summary Report:

**Call Overview**
- Total calls: 25
- Average duration: 12 minutes
- Follow-up required: 8 calls

**Key Outcomes**
- 5 new qualified leads identified
- 3 product demos scheduled
- 2 pricing discussions initiated

**Action Items**
- Follow up with 3 prospects by Friday
- Send product information to 5 leads
- Schedule technical demo for enterprise client

**Issues Identified**
- 2 prospects mentioned budget constraints
- 1 lead needs additional technical validation"""

CLIENT_REPORT_UPDATE = """Client Report Update:

**Report Status: Updated**

**Key Metrics**
- Client satisfaction: 4.8/5
- Project completion: 85%
- On-time delivery: 92%

**Recent Achievements**
- Completed Phase 2 deliverables
- Resolved 3 critical issues
- Implemented requested feature updates

**Progress Summary**
- Milestone 1: Completed
- Milestone 2: Completed
- Milestone 3: In Progress (85% complete)
- Milestone 4: Pending

**Next Steps**
- Complete final testing phase
- Prepare final deliverables
- Schedule project review meeting"""

# Checked in order against the lowercased task text.
CANNED_RESPONSES: tuple[tuple[str, str], ...] = (
    ("analyze leads", LEAD_ANALYSIS_REPORT),
    ("summarize calls", CALL_SUMMARY_REPORT),
    ("update client report", CLIENT_REPORT_UPDATE),
)


def canned_response_for(task: str) -> str | None:
    task_lower = task.lower()
    for phrase, template in CANNED_RESPONSES:
        if phrase in task_lower:
            return template
    return None


def generic_acknowledgement(
    task: str,
    *,
    priority: str,
    context: str | None,
    now: datetime,
) -> str:
    lines = [
        f'Task completed successfully: "{task}"',
        "",
        "**Status**: Completed",
        f"**Timestamp**: {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Priority**: {priority}",
        "",
    ]
    if context:
        lines.extend([f"**Context**: {context}", ""])
    lines.append("The task has been processed and is ready for review.")
    return "\n".join(lines)
