"""记忆模块：保存单个目标的执行轨迹"""

import json
import time
from pathlib import Path
from typing import Dict, Optional, Sequence

from .models import ExecutionStep, ExecutionTrace, LoopState


def format_history(steps: Sequence[ExecutionStep], last_n: Optional[int] = None) -> str:
    """格式化历史步骤，编号从 1 开始"""
    if not steps:
        return "(无历史)"

    offset = 0
    if last_n is not None and len(steps) > last_n:
        offset = len(steps) - last_n
        steps = steps[offset:]

    lines = []
    for i, step in enumerate(steps, start=offset + 1):
        status = "SUCCESS" if step.success else "FAILED"
        lines.append(f"{i}. {step.description} - {status}")
    return "\n".join(lines)


class Memory:
    """记忆模块：一个目标对应一个 Memory，目标结束后即丢弃"""

    def __init__(self, goal: str):
        self.trace = ExecutionTrace(goal=goal)
        self._started = time.monotonic()

    @property
    def steps(self):
        return self.trace.steps

    def record(self, step: ExecutionStep):
        """追加一步（已记录的步骤不再修改）"""
        self.trace.steps.append(step)

    def finish(self, success: bool, final_state: LoopState, final_result: str) -> ExecutionTrace:
        self.trace.overall_success = success
        self.trace.final_state = final_state
        self.trace.final_result = final_result
        self.trace.total_time = time.monotonic() - self._started
        return self.trace

    def metrics(self) -> Dict:
        steps = self.trace.steps
        total = len(steps)
        successful = sum(1 for s in steps if s.success)
        return {
            "total_steps": total,
            "successful_steps": successful,
            "failed_steps": total - successful,
            "success_rate": successful / total if total else 0.0,
            "total_time": self.trace.total_time,
            "average_step_time": sum(s.elapsed for s in steps) / total if total else 0.0,
        }

    def save(self, path):
        """把执行轨迹和统计写入 JSON 文件"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.trace.to_dict()
        data["metrics"] = self.metrics()
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return path
