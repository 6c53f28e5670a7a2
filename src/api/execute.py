"""
Code execution API endpoints
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from core.config import get_settings
from core.error_tracking import capture_exception
from core.exceptions import InvalidRequestError
from core.languages import LanguageRegistry
from services.execution_service import ExecutionService
from services.models import (
    ExecutionResult,
    InstallPackagesRequest,
    RunCodeRequest,
    RunCommandRequest,
    StagedFile,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/execute", tags=["execution"])

class FileSpec(BaseModel):
    """Auxiliary file to stage next to the source file"""
    path: str = Field(..., description="Path relative to the working directory")
    content: str = Field("", description="File content")

class RunRequest(BaseModel):
    """Code execution request"""
    code: Optional[str] = Field(None, description="Code to execute")
    language: str = Field("javascript", description="Programming language")
    input: str = Field("", description="Standard input")
    files: List[FileSpec] = Field(default_factory=list, description="Additional files")

class CommandRequest(BaseModel):
    """Shell command request"""
    command: Optional[str] = Field(None, description="Shell command to run")
    cwd: str = Field(settings.default_cwd, description="Working directory")
    timeout: int = Field(settings.command_timeout_ms, description="Timeout in milliseconds")

class InstallRequest(BaseModel):
    """Package installation request"""
    model_config = ConfigDict(populate_by_name=True)

    package_manager: str = Field("npm", alias="packageManager")
    packages: List[str] = Field(default_factory=list)

class _ResultResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    exit_code: int = Field(..., alias="exitCode")
    stdout: str
    stderr: str

class RunResponse(_ResultResponse):
    """Code execution response"""
    execution_time: float = Field(..., alias="executionTime")
    preview_url: Optional[str] = Field(None, alias="previewUrl")

class CommandResponse(_ResultResponse):
    """Shell command response"""
    cwd: str

class InstallResponse(_ResultResponse):
    """Package installation response"""
    packages: List[str]

def get_execution_service(request: Request) -> ExecutionService:
    """Execution service created during application startup"""
    return request.app.state.execution_service

def get_language_registry(request: Request) -> LanguageRegistry:
    """Language registry created during application startup"""
    return request.app.state.languages

def _bad_request(error: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content=error.to_dict())

def _server_error(action: str, error: Exception) -> JSONResponse:
    logger.error(f"{action} error: {error}", exc_info=True)
    capture_exception(error, properties={"action": action})
    return JSONResponse(
        status_code=500,
        content={
            "error": str(error),
            "details": f"{type(error).__name__}: {error}",
        },
    )

def _result_fields(result: ExecutionResult) -> dict:
    return {
        "success": result.success,
        "exit_code": result.exit_code,
        "stdout": result.stdout,
        "stderr": result.stderr,
    }

@router.post("/run", response_model=RunResponse)
async def run_code(
    request: RunRequest,
    service: ExecutionService = Depends(get_execution_service),
):
    """Execute code in a fresh sandbox"""
    try:
        run_request = RunCodeRequest(
            code=request.code,
            language=request.language,
            input=request.input,
            files=[StagedFile(path=f.path, content=f.content) for f in request.files],
        )
        result = await service.run_code(run_request)
    except InvalidRequestError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error("Execution", e)

    return RunResponse(
        **_result_fields(result),
        execution_time=result.elapsed_ms,
        preview_url=result.preview_url,
    )

@router.post("/command", response_model=CommandResponse)
async def run_command(
    request: CommandRequest,
    service: ExecutionService = Depends(get_execution_service),
):
    """Execute a terminal command in a fresh sandbox"""
    try:
        command_request = RunCommandRequest(
            command=request.command,
            cwd=request.cwd,
            timeout_ms=request.timeout,
        )
        result = await service.run_command(command_request)
    except InvalidRequestError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error("Command execution", e)

    return CommandResponse(**_result_fields(result), cwd=result.cwd)

@router.post("/install", response_model=InstallResponse)
async def install_packages(
    request: InstallRequest,
    service: ExecutionService = Depends(get_execution_service),
):
    """Install packages (npm, pip, apt, cargo) in a fresh sandbox"""
    try:
        install_request = InstallPackagesRequest(
            package_manager=request.package_manager,
            packages=request.packages,
        )
        result = await service.install_packages(install_request)
    except InvalidRequestError as e:
        return _bad_request(e)
    except Exception as e:
        return _server_error("Installation", e)

    return InstallResponse(**_result_fields(result), packages=result.packages)

@router.get("/languages", response_model=List[str])
async def get_supported_languages(
    languages: LanguageRegistry = Depends(get_language_registry),
):
    """Get list of supported programming languages"""
    return languages.identifiers()

@router.get("/languages/{language}")
async def get_language_info(
    language: str,
    languages: LanguageRegistry = Depends(get_language_registry),
):
    """Get information about a specific language"""
    try:
        profile = languages.resolve(language)
    except InvalidRequestError as e:
        return _bad_request(e)

    return {
        **profile.to_dict(),
        "lifetime_ms": settings.run_lifetime_ms,
    }
