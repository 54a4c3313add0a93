"""Static command catalogue offered by /help and tab completion."""

POWERSHELL_COMMANDS: list[str] = [
    "Get-Process",
    "Get-Service",
    "Stop-Process",
    "Start-Process",
    "Get-Content",
    "Set-Content",
    "Get-Item",
    "Set-Item",
    "Get-Location",
    "Set-Location",
    "Clear-Host",
    "Write-Host",
    "Get-ChildItem",
    "Remove-Item",
    "Copy-Item",
    "Move-Item",
    "New-Item",
    "Invoke-Command",
    "Get-Help",
    "Get-Command",
]

NPM_COMMANDS: list[str] = [
    "npm install",
    "npm start",
    "npm run",
    "node",
    "npx",
    "npm run build",
    "npm test",
    "npm init",
    "npm publish",
    "npm outdated",
    "npm update",
    "npm uninstall",
    "npm list",
    "npm cache clean",
    "npm run dev",
    "npm find",
    "npm audit",
    "npm audit fix",
]

UNIX_COMMANDS: list[str] = ["ls", "cd", "dir", "mkdir", "rm", "cp", "mv"]

DEV_COMMANDS: list[str] = ["lint", "lint:fix", "format", "format:check", "test", "build", "dev"]

CATEGORIES: dict[str, list[str]] = {
    "PowerShell Commands": POWERSHELL_COMMANDS,
    "NPM Commands": NPM_COMMANDS,
    "Unix-like Commands": UNIX_COMMANDS,
    "Development Commands": DEV_COMMANDS,
}


def completion_keywords() -> list[str]:
    """Flatten the catalogue for completion.

    npm and Unix entries take arguments, so they carry a trailing space.
    """
    return [
        *POWERSHELL_COMMANDS,
        *(f"{cmd} " for cmd in NPM_COMMANDS),
        *(f"{cmd} " for cmd in UNIX_COMMANDS),
        *DEV_COMMANDS,
    ]
