"""Legal retrieval prompts."""

KEYWORD_TRANSLATION_PROMPT = """당신은 산업안전보건 법령 검색 보조자입니다.
아래는 현장 컨설턴트가 말로 설명한 현장 상황입니다. 구어체/현장 은어를
산업안전보건기준에 관한 규칙에서 쓰는 표준 검색 키워드로 바꾸세요.

[규칙]
- 표준 법령 용어로 된 키워드 3~5개만 출력합니다. (예: "무거운 거 들어요" → "중량물")
- 현장 설명에 명시적으로 나오지 않은 위험 분야는 절대 포함하지 마세요.
  특히 다음 분야는 대본에 직접 언급된 경우에만 허용합니다: {off_topic_terms}
- 설명, 번호, 따옴표 없이 쉼표로 구분된 한 줄만 출력합니다.

[현장 설명]
{transcript}
"""

NO_CONTEXT_SENTINEL = (
    "관련 법령을 특정하지 못했습니다. 산업안전보건법 및 산업안전보건기준에 관한 "
    "규칙의 일반 안전 원칙을 적용하되, 조문 번호를 지어내지 마세요."
)

DOCUMENT_LABEL = "[참고 법령 {n}]"
