"""Prompt builders for resume generation stages."""

from __future__ import annotations

from collections.abc import Sequence

from commit_resume.models import LedgerEntry, RepoActivity

_SECTION_PROMPT = """아래 커밋 기록에서 이력서에 넣을만한 의미있는 작업들을 모두 추출해.

규칙:
- 설명 없이 바로 "-"로 시작
- 각 항목에 [레포명] 포함
- 기술스택 언급
- 한국어
- 사소한 수정(오타, 포맷팅 등)은 제외
- 비슷한 작업은 하나로 통합
- 개수 제한 없이 의미있는 작업은 전부 포함
- "등", "..." 같은 생략 표현 사용 금지

예시:
- [exif-frame] EXIF 메타데이터 처리 기능 개선 (JavaScript, Canvas API)

{commits}
출력:"""

_REPO_SUMMARY_PROMPT = """아래는 [{repo}] 프로젝트의 활동 내역이야.
이력서의 프로젝트 경험 섹션에 들어갈 내용으로 정리해줘.

반드시 아래 템플릿 형식을 정확히 따라야 해:

---
## {repo}

**한 줄 요약** ({start} ~ {end})

### 주요 성과
- 성과 내용
- 성과 내용

### 기술 스택
TypeScript, Node.js
---

규칙:
- 위 템플릿 형식을 반드시 지켜
- "한 줄 요약"은 프로젝트를 한 문장으로 설명 (예: "서버리스 백엔드 API 개발 및 운영")
- "주요 성과"는 bullet point로 정리, 비슷한 작업은 통합
- "기술 스택"은 쉼표로 구분된 한 줄로 작성
- 의미있는 작업은 절대 생략하지 말고 전부 포함
- "등", "..." 같은 생략 표현 사용 금지
- 코드블록 사용 금지
- 한국어

활동 내역:
{activities}

출력:"""

_TECH_STACK_PROMPT = """아래 프로젝트 경험들에서 사용된 기술스택을 추출해서 정리해줘.

규칙:
- "# 기술 역량" 헤더로 시작
- 카테고리별로 그룹화 (언어, 프레임워크, 도구 등)
- 모든 기술스택을 빠짐없이 전부 나열
- "등", "..." 같은 생략 표현 사용 금지
- 코드블록 사용 금지
- 한국어

프로젝트 경험:
{summaries}

출력:"""


def format_commits_for_prompt(year_month: str, entries: Sequence[LedgerEntry]) -> str:
    """Render one month of commits as Markdown, grouped by repository."""

    year, month = year_month.split("-", 1)
    by_repo: dict[str, list[str]] = {}
    for entry in entries:
        by_repo.setdefault(entry.repo, []).append(entry.message)

    parts = [f"## {year}년 {int(month)}월 활동 내역\n"]
    for repo, messages in by_repo.items():
        lines = [f"### {repo}", *(f"- {message}" for message in messages)]
        parts.append("\n".join(lines) + "\n")
    return "\n".join(parts) + "\n"


def build_section_prompt(year_month: str, entries: Sequence[LedgerEntry]) -> str:
    return _SECTION_PROMPT.format(commits=format_commits_for_prompt(year_month, entries))


def build_repo_summary_prompt(repo_name: str, activities: Sequence[RepoActivity]) -> str:
    """Prompt for one project-experience entry covering ``activities``."""

    ordered = sorted(activities, key=lambda activity: activity.year_month, reverse=True)
    months = sorted(activity.year_month for activity in activities)
    return _REPO_SUMMARY_PROMPT.format(
        repo=repo_name,
        start=months[0] if months else "",
        end=months[-1] if months else "",
        activities="\n".join(f"{activity.year_month}: {activity.line}" for activity in ordered),
    )


def build_tech_stack_prompt(summaries: str) -> str:
    return _TECH_STACK_PROMPT.format(summaries=summaries)
