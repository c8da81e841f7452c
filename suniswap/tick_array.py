"""
Tick Array (버킷) 인덱스 계산

틱은 tick_spacing * TICK_ARRAY_SIZE 폭의 배열(버킷) 단위로 저장됩니다.
버킷의 시작 틱은 항상 −∞ 방향 내림(floor)으로 구합니다.

    size = tick_spacing * 8
    start = floor(tick / size) * size

    예) tick=-120, spacing=60 → size=480, start=-480 (0 이 아님)

음수 틱에서 0 방향으로 잘라내는(truncate) 계산을 쓰면 다른 버킷을 가리키게 되므로
Python 의 // 연산자를 그대로 사용합니다.
"""

from typing import NamedTuple, Tuple

from .constants import MIN_TICK, MAX_TICK, TICK_ARRAY_SIZE
from .errors import DomainRangeError
from .math.tick_math import validate_tick, validate_tick_range, validate_tick_spacing


class TickArrayRange(NamedTuple):
    """포지션 경계 틱이 속한 버킷의 시작 틱 (같은 버킷이면 두 값이 같음)"""
    lower_start: int
    upper_start: int

    @property
    def starts(self) -> Tuple[int, ...]:
        if self.lower_start == self.upper_start:
            return (self.lower_start,)
        return (self.lower_start, self.upper_start)


def tick_array_size(tick_spacing: int, array_size: int = TICK_ARRAY_SIZE) -> int:
    """버킷 하나가 덮는 틱 폭"""
    validate_tick_spacing(tick_spacing)
    if isinstance(array_size, bool) or not isinstance(array_size, int) or array_size < 1:
        raise DomainRangeError(f"배열 크기는 1 이상의 정수여야 합니다: {array_size!r}")
    return tick_spacing * array_size


def get_tick_array_start_index(
    tick: int,
    tick_spacing: int,
    array_size: int = TICK_ARRAY_SIZE,
) -> int:
    """틱이 속한 버킷의 시작 틱

    Args:
        tick: 틱 인덱스 (MIN_TICK ~ MAX_TICK)
        tick_spacing: 틱 간격
        array_size: 버킷당 틱 개수 (기본값 8)

    Returns:
        시작 틱 (size 의 배수, start <= tick < start + size)

    Raises:
        DomainRangeError: 틱이 도메인 밖이거나 틱 간격이 잘못된 경우
    """
    validate_tick(tick)
    size = tick_array_size(tick_spacing, array_size)
    return (tick // size) * size


def get_tick_arrays_for_range(tick_lower: int, tick_upper: int, tick_spacing: int) -> TickArrayRange:
    """포지션 경계 틱 두 개가 속한 버킷

    포지션을 열 때 엔진에 넘기는 하한/상한 틱 배열의 시작 틱.
    두 경계가 같은 버킷이면 starts 는 하나만 돌려줍니다.
    """
    validate_tick_range(tick_lower, tick_upper, tick_spacing)
    return TickArrayRange(
        lower_start=get_tick_array_start_index(tick_lower, tick_spacing),
        upper_start=get_tick_array_start_index(tick_upper, tick_spacing),
    )


def get_tick_arrays_spanning(tick_lower: int, tick_upper: int, tick_spacing: int) -> Tuple[int, ...]:
    """[tick_lower, tick_upper] 구간을 빠짐없이 덮는 모든 버킷의 시작 틱 (오름차순)"""
    validate_tick_range(tick_lower, tick_upper, tick_spacing)
    size = tick_array_size(tick_spacing)
    first = get_tick_array_start_index(tick_lower, tick_spacing)
    last = get_tick_array_start_index(tick_upper, tick_spacing)
    return tuple(range(first, last + size, size))


def _overlaps_domain(start: int, size: int) -> bool:
    return start <= MAX_TICK and start + size - 1 >= MIN_TICK


def get_tick_arrays_for_swap(
    current_tick: int,
    tick_spacing: int,
    a_to_b: bool,
    count: int = 3,
) -> Tuple[int, ...]:
    """스왑이 지나갈 버킷의 시작 틱 목록

    현재 틱의 버킷에서 시작해 a_to_b 이면 아래로 (가격 하락),
    아니면 위로 버킷 크기만큼 이동합니다. 결과는 엄격히 단조이고 중복이 없습니다.

    Args:
        current_tick: 풀의 현재 틱
        tick_spacing: 틱 간격
        a_to_b: True 면 token A → token B (틱 감소)
        count: 필요한 버킷 개수 (기본값 3)

    Returns:
        시작 틱 튜플 (길이 count)

    Raises:
        DomainRangeError: 요청한 버킷 중 하나가 틱 도메인을 완전히 벗어나는 경우
            (잘라내거나 같은 버킷을 반복하지 않음)
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise DomainRangeError(f"버킷 개수는 1 이상의 정수여야 합니다: {count!r}")

    size = tick_array_size(tick_spacing)
    start = get_tick_array_start_index(current_tick, tick_spacing)
    step = -size if a_to_b else size

    starts = []
    for i in range(count):
        candidate = start + i * step
        if not _overlaps_domain(candidate, size):
            raise DomainRangeError(
                f"틱 배열 {candidate} 이(가) 틱 도메인 밖입니다 "
                f"(current_tick={current_tick}, tick_spacing={tick_spacing}, count={count})"
            )
        starts.append(candidate)
    return tuple(starts)


def is_tick_in_array(tick: int, start_tick_index: int, tick_spacing: int) -> bool:
    """틱이 start_tick_index 로 시작하는 버킷 안에 있는지"""
    size = tick_array_size(tick_spacing)
    return start_tick_index <= tick < start_tick_index + size


def tick_offset_in_array(tick: int, start_tick_index: int, tick_spacing: int) -> int:
    """버킷 안에서 틱의 위치 (0 ~ TICK_ARRAY_SIZE - 1)

    Raises:
        DomainRangeError: 버킷 밖이거나 틱 간격에 정렬되지 않은 틱
    """
    validate_tick(tick)
    if not is_tick_in_array(tick, start_tick_index, tick_spacing):
        raise DomainRangeError(f"틱 {tick} 은(는) 시작 틱 {start_tick_index} 의 배열 밖입니다")
    if tick % tick_spacing != 0:
        raise DomainRangeError(f"틱 {tick} 이(가) 틱 간격 {tick_spacing} 에 정렬되지 않았습니다")
    return (tick - start_tick_index) // tick_spacing


def engine_accepts_tick_array_start(start_tick_index: int, tick_spacing: int) -> bool:
    """배포된 엔진이 틱 배열 초기화 시 받아들이는 시작 틱인지

    엔진 규칙: start % size == 0, start >= MIN_TICK, start + size <= MAX_TICK + spacing.
    도메인 양 끝에서는 내림 규칙으로 구한 버킷을 엔진이 거부할 수 있으므로
    통합 경계에서 미리 확인할 때 씁니다. 시작 틱 계산 자체는 바꾸지 않습니다.
    """
    size = tick_array_size(tick_spacing)
    if start_tick_index % size != 0:
        return False
    return start_tick_index >= MIN_TICK and start_tick_index + size <= MAX_TICK + tick_spacing
