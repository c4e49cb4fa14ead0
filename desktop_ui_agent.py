import argparse
import asyncio
import logging
import sys

from desktop_agent import AgentConfig, ExecutionLoop

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="视觉引导的 Windows 桌面自动化智能体")
    parser.add_argument("goal", help="自然语言描述的任务，例如：打开记事本并输入 Hello")
    parser.add_argument("--max-steps", type=int, default=None, help="最大步骤数（默认读取 AGENT_MAX_STEPS 或 20）")
    parser.add_argument("--env-file", default=None, help=".env 文件路径")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--trace-out", default=None, help="把执行轨迹写入该 JSON 文件")
    return parser.parse_args(argv)


def setup_logging(level: str, log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, handlers=handlers)


async def run(args) -> bool:
    config = AgentConfig.from_env(args.env_file)
    if args.max_steps is not None:
        config.max_steps = args.max_steps
    if not config.api_key:
        raise ValueError("请设置环境变量 OPENAI_API_KEY，例如：export OPENAI_API_KEY='sk-...'")

    loop = ExecutionLoop.from_config(config)
    trace = await loop.run(args.goal)

    print(f"\n{'=' * 60}")
    print(trace.final_result)
    print(f"共 {len(trace.steps)} 步，耗时 {trace.total_time:.1f}s")

    if args.trace_out:
        path = loop.memory.save(args.trace_out)
        print(f"执行轨迹已保存: {path}")
    return trace.overall_success


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    ok = asyncio.run(run(args))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
