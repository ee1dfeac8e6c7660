"""Structured extraction prompts.

The mode table maps each AiType to its system framing and to what the three
output fields (result_value, legal_basis, solution) mean in that mode. The
style table maps each ResponseStyle to a writing directive.
"""

from __future__ import annotations

from typing import NamedTuple

from fieldscribe.models.enums import AiType, ResponseStyle


class ModeStrategy(NamedTuple):
    system: str
    field_semantics: str


MODE_STRATEGIES: dict[AiType, ModeStrategy] = {
    AiType.SAFETY: ModeStrategy(
        system=(
            "당신은 20년 경력의 산업안전보건 컨설턴트를 보좌하는 AI 비서입니다. "
            "현장 녹음 대본에서 유해·위험요인을 분류하고, 각 위험요인에 대해 "
            "반드시 구체적인 법령 조문(예: 산업안전보건기준에 관한 규칙 제663조)을 근거로 제시합니다. "
            "'검토 필요', '관련 법령 확인 요망' 같은 모호한 표현은 절대 쓰지 않습니다."
        ),
        field_semantics=(
            "- result_value: 양식 항목에 들어갈 위험요인 내용(분류, 원인, 현재 상태 등 항목 헤더에 맞는 값)\n"
            "- legal_basis: 해당 위험요인의 구체적 법령 조문 (법령명 + 조항 번호 + 핵심 요지)\n"
            "- solution: 법령 요구사항을 충족하기 위한 구체적 개선 대책"
        ),
    ),
    AiType.MEETING: ModeStrategy(
        system=(
            "당신은 안전보건 회의(산업안전보건위원회, 협의체 회의 등)의 회의록 작성을 돕는 AI 비서입니다. "
            "논의된 안건과 결정 사항, 후속 조치를 빠짐없이 정리합니다."
        ),
        field_semantics=(
            "- result_value: 양식 항목에 해당하는 논의 내용 요약\n"
            "- legal_basis: 참석자의 의견·비고 사항 (법령 언급이 있었다면 그대로 기재)\n"
            "- solution: 결정된 조치 사항 (담당자·기한이 언급되었다면 포함)"
        ),
    ),
    AiType.INSPECTION: ModeStrategy(
        system=(
            "당신은 시설·설비 점검 보고서를 작성하는 AI 비서입니다. "
            "점검 대상의 현재 상태, 결함의 원인, 보수 조치를 사실 위주로 기록합니다."
        ),
        field_semantics=(
            "- result_value: 점검 대상의 현재 상태 (양호/불량 및 구체적 상태 묘사)\n"
            "- legal_basis: 결함 또는 이상의 원인\n"
            "- solution: 필요한 보수·교체·정비 조치"
        ),
    ),
}


STYLE_DIRECTIVES: dict[ResponseStyle, str] = {
    ResponseStyle.EXPERT: (
        "전문가 보고서 문체로 작성합니다. 항목이 여러 개면 1. 2. 3. 번호를 붙이고, "
        "전문 용어를 사용하며, 문장은 '~함', '~필요', '~미설치'처럼 명사형으로 간결하게 끝맺습니다."
    ),
    ResponseStyle.GENERAL: (
        "일반 보고서 문체로 작성합니다. 비전문가도 이해할 수 있도록 균형 잡힌 서술형 문장을 사용합니다."
    ),
    ResponseStyle.SUMMARY: (
        "요약 문체로 작성합니다. 글머리 기호(-)와 핵심 키워드만 사용하고 서술형 문장은 피합니다."
    ),
}


COMMON_RULES = """[공통 규칙]
1. 유도 질문 배제: 질문자가 제안하거나 유도한 내용이라도 응답자가 명시적으로 확인하지 않았다면 사실로 기록하지 마세요.
2. 근거 없는 값 금지: 대본에서 답을 찾을 수 없는 항목은 지어내지 말고 null로 두세요. 헤더를 직접 말하지 않았더라도 맥락상 명확하면 추론하여 채웁니다.
3. 세트 분리: 대본에 서로 다른 대상/장소/위험요인이 여러 개 나오면 각각을 별도의 세트(set)로 만드세요.
4. 교차 오염 금지: 어떤 답변도 다른 대상의 세트에 들어가면 안 됩니다. 출력 전에 각 세트의 모든 값이 해당 대상에 관한 것인지 스스로 검증하세요.
5. ID 사용: template_item_id에는 아래 [평가 양식]의 id 값을 그대로 사용하고, 헤더 문구를 다시 쓰지 마세요."""


CITATION_RULES = """[법령 인용 규칙 - 하나만 고르기]
- 항목당 가장 구체적인 조문을 정확히 1개, 최대 2개까지만 인용합니다. 관련 법령을 나열하지 마세요.
- 여러 위험 분류가 동시에 해당하면 다음 우선순위로 하나를 고릅니다:
  근골격계 부담작업(반복작업·부적절한 자세) > 중량물 취급 > 추락·전도(넘어짐·미끄러짐) > 일반 안전조치
- [참고 법령]에 적합한 조문이 있으면 우선 사용하고, 없으면 일반 원칙을 따르되 조문 번호를 지어내지 마세요."""


OUTPUT_FORMAT = """[출력 형식]
설명 없이 아래 형식의 JSON 객체 하나만 출력하세요.
{
  "title": "평가 내용을 한 줄로 요약한 제목 (20자 이내)",
  "sets": [
    {
      "results": [
        {"template_item_id": "...", "result_value": "...", "legal_basis": "...", "solution": "..."}
      ]
    }
  ]
}
답을 찾을 수 없는 필드는 null로 두세요. 해당 내용이 전혀 없으면 "sets": [] 로 출력하세요."""


EXTRACTION_PROMPT = """[현장 녹음 대본]
---
{transcript}
---

[평가 양식] (id → 항목)
{schema}

[참고 법령]
{legal_context}

[작성 지침]
{field_semantics}

[문체]
{style}

{common_rules}
{citation_rules}

{output_format}
"""


def build_system_prompt(ai_type: AiType) -> str:
    return MODE_STRATEGIES[ai_type].system


def build_extraction_prompt(
    transcript: str,
    schema_text: str,
    legal_context: str,
    ai_type: AiType,
    response_style: ResponseStyle,
) -> str:
    strategy = MODE_STRATEGIES[ai_type]
    return EXTRACTION_PROMPT.format(
        transcript=transcript,
        schema=schema_text,
        legal_context=legal_context,
        field_semantics=strategy.field_semantics,
        style=STYLE_DIRECTIVES[response_style],
        common_rules=COMMON_RULES,
        citation_rules=CITATION_RULES if ai_type is AiType.SAFETY else "",
        output_format=OUTPUT_FORMAT,
    )
